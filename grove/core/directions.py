"""(delta_row, delta_column) offsets. Row 0 is rank 8, so UP decreases the row."""

UP = (-1, 0)
DOWN = (1, 0)
LEFT = (0, -1)
RIGHT = (0, 1)

UP_LEFT = (-1, -1)
UP_RIGHT = (-1, 1)
DOWN_LEFT = (1, -1)
DOWN_RIGHT = (1, 1)

ORTHOGONAL = (UP, DOWN, LEFT, RIGHT)
DIAGONAL = (UP_LEFT, UP_RIGHT, DOWN_LEFT, DOWN_RIGHT)
ALL_DIRECTIONS = ORTHOGONAL + DIAGONAL

KNIGHT_JUMPS = (
    (-2, -1), (-2, 1),
    (2, -1), (2, 1),
    (-1, -2), (1, -2),
    (-1, 2), (1, 2),
)

MAX_SLIDE = 7
