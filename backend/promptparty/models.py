from promptparty import db
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class Player(db.Model):
    __tablename__ = 'player'
    # Opaque per-browser token
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    current_room_id = db.Column(
        db.Integer,
        db.ForeignKey('room.id', name='fk_player_current_room_id', use_alter=True),
        nullable=True,
        index=True,
    )
    score = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self):
        return {
            'player_id': self.id,
            'name': self.name,
            'current_room_id': self.current_room_id,
            'score': self.score,
            'created_at': _iso(self.created_at),
        }

    def to_roster_entry(self):
        return {
            'player_id': self.id,
            'name': self.name,
            'score': self.score,
        }


class Room(db.Model):
    __tablename__ = 'room'
    id = db.Column(db.Integer, primary_key=True)
    join_code = db.Column(db.String(16), unique=True, index=True, nullable=False)
    host_id = db.Column(db.String(64), db.ForeignKey('player.id'), nullable=False)
    current_round = db.Column(db.Integer, default=0, nullable=False)
    max_rounds = db.Column(db.Integer, default=6, nullable=False)
    status = db.Column(db.String(16), default='waiting', nullable=False)  # waiting, playing, finished
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'join_code': self.join_code,
            'host_id': self.host_id,
            'current_round': self.current_round,
            'max_rounds': self.max_rounds,
            'status': self.status,
            'created_at': _iso(self.created_at),
        }


class Scenario(db.Model):
    __tablename__ = 'scenario'
    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'text': self.text,
            'description': self.description,
        }


class RoundState(db.Model):
    __tablename__ = 'round_state'
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), unique=True, index=True, nullable=False)
    current_round = db.Column(db.Integer, nullable=False)
    current_scenario_id = db.Column(db.Integer, db.ForeignKey('scenario.id'), nullable=True)
    status = db.Column(db.String(16), default='prompt', nullable=False)  # prompt, judging, results
    all_judged = db.Column(db.Boolean, default=False, nullable=False)

    scenario = db.relationship('Scenario')

    def to_dict(self):
        return {
            'id': self.id,
            'room_id': self.room_id,
            'current_round': self.current_round,
            'current_scenario_id': self.current_scenario_id,
            'status': self.status,
            'all_judged': self.all_judged,
        }


class Submission(db.Model):
    __tablename__ = 'submission'
    __table_args__ = (
        db.UniqueConstraint('room_id', 'player_id', 'round', name='uq_submission_room_player_round'),
        db.Index('ix_submission_room_round', 'room_id', 'round'),
    )
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False)
    player_id = db.Column(db.String(64), db.ForeignKey('player.id'), nullable=False)
    round = db.Column(db.Integer, nullable=False)
    prompt = db.Column(db.Text, nullable=False)
    outcome = db.Column(db.Text, nullable=True)
    is_winner = db.Column(db.Boolean, nullable=True)
    submitted_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'room_id': self.room_id,
            'player_id': self.player_id,
            'round': self.round,
            'prompt': self.prompt,
            'outcome': self.outcome,
            'is_winner': self.is_winner,
            'submitted_at': _iso(self.submitted_at),
        }
