"""Party-game rules behind the HTTP and socket layers.

Players and their tokens live in ``identity``, rooms and join codes in
``rooms`` and ``roster``, and the per-round ``prompt -> judging -> results``
cycle in ``state_machine`` and ``judging``. Every mutation here ends with a
``state_update`` push from ``notify``.
"""
