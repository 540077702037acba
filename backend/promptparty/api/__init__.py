from flask import jsonify, request

from promptparty.errors import GameError, InvalidArgument


def register_error_handlers(flask_app):
    @flask_app.errorhandler(GameError)
    def handle_game_error(exc):
        return jsonify(exc.to_dict()), exc.status_code


def require_fields(*names):
    """Return the JSON body values for ``names``, all of them required strings."""
    data = request.get_json(silent=True) or {}
    missing = [n for n in names if not data.get(n)]
    if missing:
        raise InvalidArgument(f"Missing required field(s): {', '.join(missing)}")
    not_strings = [n for n in names if not isinstance(data[n], str)]
    if not_strings:
        raise InvalidArgument(f"Field(s) must be strings: {', '.join(not_strings)}")
    return [data[n] for n in names]
