from datetime import datetime, timezone
from kartboard import db


def _utcnow():
    return datetime.now(timezone.utc)


def _isoformat(value):
    return value.isoformat() if value else None


ROUND_STATUSES = ('DRAFT', 'COMPLETED', 'HIDDEN')


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False, index=True)
    avatar_url = db.Column(db.String(512), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    # Deleting a player drops their round memberships and race results
    round_players = db.relationship('RoundPlayer', back_populates='player', cascade='all, delete')
    race_results = db.relationship('RaceResult', back_populates='player', cascade='all, delete')
    won_rounds = db.relationship('Round', back_populates='winner')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'avatar_url': self.avatar_url,
        }


class Track(db.Model):
    __tablename__ = 'track'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), unique=True, nullable=False, index=True)
    image_url = db.Column(db.String(512), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'image_url': self.image_url,
        }


class Round(db.Model):
    __tablename__ = 'round'
    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
    status = db.Column(db.String(16), default='DRAFT', nullable=False, index=True)  # DRAFT, COMPLETED, HIDDEN
    winner_player_id = db.Column(db.Integer, db.ForeignKey('player.id', ondelete='SET NULL'), nullable=True)
    # Bumped on every write to the round row; stale writers get StaleDataError
    version = db.Column(db.Integer, nullable=False)

    winner = db.relationship('Player', back_populates='won_rounds')
    round_players = db.relationship(
        'RoundPlayer', back_populates='round', order_by='RoundPlayer.seat', cascade='all, delete-orphan'
    )
    races = db.relationship('Race', back_populates='round', order_by='Race.race_index', cascade='all, delete-orphan')

    __mapper_args__ = {'version_id_col': version}

    @property
    def player_ids(self):
        return [rp.player_id for rp in self.round_players]

    @property
    def regular_races(self):
        return [r for r in self.races if not r.is_overtime]

    @property
    def overtime_race(self):
        return next((r for r in self.races if r.is_overtime), None)

    def race_at(self, race_index):
        return next((r for r in self.races if r.race_index == race_index), None)

    def touch(self):
        """Mark the round row dirty so the version counter advances."""
        self.updated_at = _utcnow()

    def to_dict(self, include_races=True):
        data = {
            'id': self.id,
            'created_at': _isoformat(self.created_at),
            'status': self.status,
            'winner_player_id': self.winner_player_id,
            'winner': self.winner.to_dict() if self.winner else None,
            'players': [rp.player.to_dict() for rp in self.round_players],
            'version': self.version,
        }
        if include_races:
            data['races'] = [race.to_dict() for race in self.races]
        return data


class RoundPlayer(db.Model):
    __tablename__ = 'round_player'
    __table_args__ = (db.UniqueConstraint('round_id', 'player_id', name='uq_round_player'),)
    id = db.Column(db.Integer, primary_key=True)
    round_id = db.Column(db.Integer, db.ForeignKey('round.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id', ondelete='CASCADE'), nullable=False, index=True)
    seat = db.Column(db.Integer, nullable=False, default=0)

    round = db.relationship('Round', back_populates='round_players')
    player = db.relationship('Player', back_populates='round_players')


class Race(db.Model):
    __tablename__ = 'race'
    __table_args__ = (db.UniqueConstraint('round_id', 'race_index', name='uq_race_round_index'),)
    id = db.Column(db.Integer, primary_key=True)
    round_id = db.Column(db.Integer, db.ForeignKey('round.id', ondelete='CASCADE'), nullable=False, index=True)
    race_index = db.Column(db.Integer, nullable=False)  # 1-4, overtime uses a fixed sentinel
    is_overtime = db.Column(db.Boolean, default=False, nullable=False)
    track_id = db.Column(db.Integer, db.ForeignKey('track.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    round = db.relationship('Round', back_populates='races')
    track = db.relationship('Track')
    results = db.relationship(
        'RaceResult', back_populates='race', order_by='RaceResult.finish_position', cascade='all, delete-orphan'
    )

    def to_dict(self):
        return {
            'id': self.id,
            'race_index': self.race_index,
            'is_overtime': self.is_overtime,
            'track_id': self.track_id,
            'track': self.track.to_dict() if self.track else None,
            'results': [r.to_dict() for r in self.results],
        }


class RaceResult(db.Model):
    __tablename__ = 'race_result'
    __table_args__ = (
        db.UniqueConstraint('race_id', 'player_id', name='uq_race_result_player'),
        db.UniqueConstraint('race_id', 'finish_position', name='uq_race_result_position'),
    )
    id = db.Column(db.Integer, primary_key=True)
    race_id = db.Column(db.Integer, db.ForeignKey('race.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id', ondelete='CASCADE'), nullable=False, index=True)
    finish_position = db.Column(db.Integer, nullable=False)
    points_awarded = db.Column(db.Integer, nullable=True)  # always null for overtime

    race = db.relationship('Race', back_populates='results')
    player = db.relationship('Player', back_populates='race_results')

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'finish_position': self.finish_position,
            'points_awarded': self.points_awarded,
        }
