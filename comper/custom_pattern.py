from __future__ import annotations

import dataclasses
import typing

import comper.constants


@dataclasses.dataclass
class CustomPlaybackPattern:

	"""
	A user-drawn grid that drives the ``"custom"`` playback mode.

	Rows address the notes of the chord from the bottom up (row 0 is the
	root, row 1 the next note above it, and so on). Columns are 16th-note
	steps from the moment the chord is struck. An active cell at row *r*,
	column *c* sounds chord note *r* at ``c`` sixteenths.

	Parameters:
		grid: ``grid[row][col]`` is True where a note should sound.
		rows: Number of rows in the grid (at most 8).
		cols: Number of columns in the grid (at most 16).

	Example::

		# Root on the downbeat, the rest of a triad on the "and" of 1
		pattern = CustomPlaybackPattern.empty(rows=3, cols=16)
		pattern.toggle(0, 0)
		pattern.toggle(1, 2)
		pattern.toggle(2, 2)
	"""

	grid: typing.List[typing.List[bool]]
	rows: int
	cols: int

	def __post_init__ (self) -> None:
		if not 1 <= self.rows <= comper.constants.CUSTOM_PATTERN_MAX_ROWS:
			raise ValueError(f"rows must be between 1 and {comper.constants.CUSTOM_PATTERN_MAX_ROWS}, got {self.rows}")
		if not 1 <= self.cols <= comper.constants.CUSTOM_PATTERN_MAX_COLS:
			raise ValueError(f"cols must be between 1 and {comper.constants.CUSTOM_PATTERN_MAX_COLS}, got {self.cols}")
		if len(self.grid) != self.rows:
			raise ValueError(f"grid has {len(self.grid)} rows, expected {self.rows}")
		for index, row in enumerate(self.grid):
			if len(row) != self.cols:
				raise ValueError(f"grid row {index} has {len(row)} columns, expected {self.cols}")

	@staticmethod
	def empty (rows: int = 4, cols: int = comper.constants.CUSTOM_PATTERN_MAX_COLS) -> CustomPlaybackPattern:

		"""Create a pattern with every cell switched off."""

		return CustomPlaybackPattern(grid=[[False] * cols for _ in range(rows)], rows=rows, cols=cols)

	@staticmethod
	def from_rows (cells: typing.Sequence[typing.Sequence[typing.Any]]) -> CustomPlaybackPattern:

		"""Build a pattern from rows of truthy/falsy cells, e.g. ``[[1, 0, 0, 0], [0, 0, 1, 0]]``.

		Raises ``ValueError`` if the rows are empty or of unequal length.
		"""

		if not cells or not isinstance(cells, (list, tuple)):
			raise ValueError("pattern must be a non-empty list of rows")

		grid = []

		for index, row in enumerate(cells):
			if not isinstance(row, (list, tuple)):
				raise ValueError(f"pattern row {index} must be a list of cells")
			grid.append([bool(cell) for cell in row])

		return CustomPlaybackPattern(grid=grid, rows=len(grid), cols=len(grid[0]))

	def toggle (self, row: int, col: int) -> bool:

		"""Flip one cell and return its new state."""

		if not 0 <= row < self.rows or not 0 <= col < self.cols:
			raise IndexError(f"cell ({row}, {col}) is outside a {self.rows}x{self.cols} grid")

		self.grid[row][col] = not self.grid[row][col]

		return self.grid[row][col]

	def active_cells (self) -> typing.Iterator[typing.Tuple[int, int]]:

		"""Yield ``(row, col)`` for every active cell, column by column."""

		for col in range(self.cols):
			for row in range(self.rows):
				if self.grid[row][col]:
					yield row, col
