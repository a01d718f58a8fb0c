from types import MappingProxyType
from typing import Dict, Mapping, Sequence, Tuple


DEFAULT_POINTS_CURVES: Dict[int, Tuple[int, ...]] = {
    4: (5, 3, 2, 1),
    3: (4, 2, 1),
    2: (2, 1),
}


class PointsTable:
    """Immutable lookup from (finish position, player count) to points.

    Built once at app start-up from ``POINTS_CURVES``. Asking for an
    unsupported player count or an out-of-range position is a caller bug
    and raises ``ValueError``.
    """

    def __init__(self, curves: Mapping[int, Sequence[int]] = None):
        curves = DEFAULT_POINTS_CURVES if curves is None else curves
        frozen = {}
        for player_count, points in curves.items():
            points = tuple(int(p) for p in points)
            if len(points) != int(player_count):
                raise ValueError(
                    f"Points curve for {player_count} players must have {player_count} entries, got {len(points)}"
                )
            frozen[int(player_count)] = points
        self._curves = MappingProxyType(frozen)

    @property
    def player_counts(self):
        return tuple(sorted(self._curves))

    def curve(self, player_count: int) -> Tuple[int, ...]:
        try:
            return self._curves[player_count]
        except KeyError:
            supported = ', '.join(str(c) for c in self.player_counts)
            raise ValueError(f"Invalid player count: {player_count}. Must be one of {supported}.") from None

    def points_for(self, position: int, player_count: int) -> int:
        curve = self.curve(player_count)
        if not 1 <= position <= player_count:
            raise ValueError(f"Invalid position: {position}. Must be between 1 and {player_count}.")
        return curve[position - 1]
