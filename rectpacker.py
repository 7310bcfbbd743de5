#!/usr/bin/env python3
"""
Rectangle Bin Packer — MaxRects 2-D Bin Packing + SVG Layouts
==============================================================
Packs rectangular items (optionally with a rectangular window cut-out)
into fixed-size bins using the free-rectangle list ("maximal rectangles")
method, and renders every packed bin to an SVG file.

Architecture
------------
  Rectangle            Axis-aligned item / free region (bottom-left origin).
  WindowedRectangle    Rectangle whose inner window becomes free space again
                       once the item is placed.
  Heuristic            Placement rule selector:
                         BottomLeft       lowest top edge, then leftmost
                         BestAreaFit      smallest leftover area
                         BestShortSideFit smallest shorter leftover side
                         BestLongSideFit  smallest longer leftover side
  RectangleBinPack     One bin: free-rectangle list, used-rectangle list,
                       single and multi-item insertion.
  pack_bins()          Opens bins until every item is packed.
  parse_csv()          Read item definitions from a CSV file.
  SVGRenderer          Render a packed bin to an SVG document.

Usage
-----
    python rectpacker.py ITEMS.csv 1120 815
    python rectpacker.py ITEMS.csv 1120 815 --heuristic BottomLeft
    python rectpacker.py ITEMS.csv 1120 815 --no-rotation --left-border 10
    python rectpacker.py ITEMS.csv 1120 815 -o layouts/bin --show-free

Input CSV Format
----------------
    "QUANTITY";"WIDTH";"HEIGHT";"LABEL";"WINDOW WIDTH";"WINDOW HEIGHT";"LEFT BORDER";"BOTTOM BORDER"
    Only QUANTITY, WIDTH and HEIGHT are required.  Rows that give a window
    width and height describe windowed items.

Dependencies
------------
    Required : svgwrite, fonttools
"""

import configparser
import csv
import logging
import os
import sys
from collections import defaultdict
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

import svgwrite
from fontTools.pens.svgPathPen import SVGPathPen
from fontTools.pens.transformPen import TransformPen
from fontTools.ttLib import TTFont, TTLibError

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when a bin is configured with an unknown placement heuristic."""


# ============================================================================
# GEOMETRY
# ============================================================================

@dataclass
class Rectangle:
    """
    Axis-aligned rectangle with its origin at the bottom-left corner.

    Used both for the items handed to a bin and for the free regions the
    bin tracks internally.  Items are never mutated by the packer: every
    placement produces a new instance (see ``placed_at`` / ``rotated``).

    Attributes
    ----------
    width  : Extent along X (must be positive).
    height : Extent along Y (must be positive).
    x      : Left edge.
    y      : Bottom edge.
    label  : Optional caption carried through packing (ignored by ==).
    """

    width: int
    height: int
    x: int = 0
    y: int = 0
    label: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Rectangle dimensions must be positive, got {self.width}x{self.height}")

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def covered_area(self) -> int:
        """Area actually occupied by material."""
        return self.area

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def top(self) -> int:
        return self.y + self.height

    def rotate(self) -> None:
        """Swap width and height in place; the position is unchanged."""
        self.width, self.height = self.height, self.width

    def rotated(self) -> "Rectangle":
        """Return a copy turned by 90°."""
        return replace(self, width=self.height, height=self.width)

    def placed_at(self, x: int, y: int) -> "Rectangle":
        """Return a copy whose bottom-left corner sits at (*x*, *y*)."""
        return replace(self, x=x, y=y)


@dataclass(kw_only=True)
class WindowedRectangle(Rectangle):
    """
    Rectangle with an inner rectangular window cut out of it.

    The window is described by its size (``window``) and by the borders
    that separate it from the outer left and bottom edges.  Once the outer
    rectangle is placed, the window, shifted inwards by ``INNER_BORDER``
    from its left and bottom edges, is handed back to the bin as free space
    so smaller items can be nested inside it.

    Rotating a windowed rectangle transposes it: the outer and window
    dimensions swap and the left and bottom borders exchange roles.
    """

    INNER_BORDER: ClassVar[int] = 1

    window: Rectangle
    left_border: int = 0
    bottom_border: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.left_border < 0 or self.bottom_border < 0:
            raise ValueError("Window borders must be non-negative")
        if (self.left_border + self.window.width + 2 * self.INNER_BORDER > self.width
                or self.bottom_border + self.window.height + 2 * self.INNER_BORDER > self.height):
            raise ValueError(
                f"Window {self.window.width}x{self.window.height} at border "
                f"({self.left_border}, {self.bottom_border}) does not fit inside "
                f"{self.width}x{self.height}")

    def rotate(self) -> None:
        super().rotate()
        self.window = self.window.rotated()
        self.left_border, self.bottom_border = self.bottom_border, self.left_border

    def rotated(self) -> "WindowedRectangle":
        return replace(self,
                       width=self.height,
                       height=self.width,
                       window=self.window.rotated(),
                       left_border=self.bottom_border,
                       bottom_border=self.left_border)

    @property
    def covered_area(self) -> int:
        return self.area - self.window.area

    def window_rect(self) -> Rectangle:
        """The window as a free rectangle in bin coordinates."""
        return Rectangle(self.window.width, self.window.height,
                         self.x + self.left_border + self.INNER_BORDER,
                         self.y + self.bottom_border + self.INNER_BORDER)


def is_contained_in(rect_a: Rectangle, rect_b: Rectangle) -> bool:
    """Return True if *rect_a* lies inside *rect_b* (shared edges allowed)."""
    return (rect_a.x >= rect_b.x and rect_a.y >= rect_b.y
            and rect_a.right <= rect_b.right
            and rect_a.top <= rect_b.top)


# ============================================================================
# PLACEMENT HEURISTICS
# ============================================================================

Score = Tuple[int, int]


class ScoredPlacement(NamedTuple):
    """A proposed placement and its (primary, secondary) score; lower is better."""

    rect: Rectangle
    score: Score


class PlacementHeuristic:
    """
    Base class for the free-rectangle placement rules.

    Subclasses only define ``score``; the scan over the free list, the
    orientation handling and the tie-breaking live here so that every rule
    selects candidates identically.
    """

    def score(self, free_rect: Rectangle, width: int, height: int) -> Score:
        """
        Score an item of *width* × *height* placed at the bottom-left corner
        of *free_rect*.  Only called when the item fits.
        """
        raise NotImplementedError

    def find_position(self, free_rectangles: Iterable[Rectangle],
                      rect: Rectangle, allow_flip: bool) -> Optional[ScoredPlacement]:
        """
        Find the best free rectangle for *rect*.

        Every free rectangle is tried upright and, when *allow_flip* is set,
        turned by 90°.  A candidate replaces the current best only if its
        score is strictly lower (primary first, then secondary), so the
        first of several equally scored positions wins.

        Parameters
        ----------
        free_rectangles : The bin's current free-rectangle list.
        rect            : Item to place; it is not modified.
        allow_flip      : Whether the 90° orientation may be used.

        Returns
        -------
        ScoredPlacement holding a new rectangle (rotated if that orientation
        won) positioned at the chosen free rectangle, or None when the item
        fits nowhere.
        """
        orientations = (False, True) if allow_flip else (False,)

        best_score: Optional[Score] = None
        best_free: Optional[Rectangle] = None
        best_rotated = False

        for free_rect in free_rectangles:
            for rotated in orientations:
                if rotated:
                    width, height = rect.height, rect.width
                else:
                    width, height = rect.width, rect.height

                if free_rect.width < width or free_rect.height < height:
                    continue

                score = self.score(free_rect, width, height)
                if best_score is None or score < best_score:
                    best_score = score
                    best_free = free_rect
                    best_rotated = rotated

        if best_free is None:
            return None

        placed = rect.rotated() if best_rotated else rect
        return ScoredPlacement(placed.placed_at(best_free.x, best_free.y), best_score)


class BottomLeft(PlacementHeuristic):
    """Lowest resulting top edge; ties go to the leftmost position."""

    def score(self, free_rect: Rectangle, width: int, height: int) -> Score:
        return free_rect.y + height, free_rect.x


class BestAreaFit(PlacementHeuristic):
    """Smallest leftover area; ties go to the smallest shorter leftover side."""

    def score(self, free_rect: Rectangle, width: int, height: int) -> Score:
        leftover_horiz = free_rect.width - width
        leftover_vert = free_rect.height - height
        return free_rect.area - width * height, min(leftover_horiz, leftover_vert)


class BestShortSideFit(PlacementHeuristic):
    """Smallest shorter leftover side; ties go to the smallest longer one."""

    def score(self, free_rect: Rectangle, width: int, height: int) -> Score:
        leftover_horiz = free_rect.width - width
        leftover_vert = free_rect.height - height
        return min(leftover_horiz, leftover_vert), max(leftover_horiz, leftover_vert)


class BestLongSideFit(PlacementHeuristic):
    """Smallest longer leftover side; ties go to the smallest shorter one."""

    def score(self, free_rect: Rectangle, width: int, height: int) -> Score:
        leftover_horiz = free_rect.width - width
        leftover_vert = free_rect.height - height
        return max(leftover_horiz, leftover_vert), min(leftover_horiz, leftover_vert)


class Heuristic(Enum):
    """Selectable placement rules."""

    BOTTOM_LEFT = "BottomLeft"
    BEST_AREA_FIT = "BestAreaFit"
    BEST_LONG_SIDE_FIT = "BestLongSideFit"
    BEST_SHORT_SIDE_FIT = "BestShortSideFit"

    @property
    def legacy_name(self) -> str:
        """The older ``Rect…`` spelling still accepted by ``parse``."""
        if self is Heuristic.BOTTOM_LEFT:
            return "RectBottomLeftRule"
        return f"Rect{self.value}"

    @classmethod
    def parse(cls, name: Union[str, "Heuristic"]) -> "Heuristic":
        """
        Resolve *name* to a Heuristic.

        Accepts a member, its value (``"BestAreaFit"``), its member name
        (``"BEST_AREA_FIT"``) or its legacy name (``"RectBestAreaFit"``).

        Raises
        ------
        ConfigurationError
            If *name* matches no heuristic.
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip()
        for member in cls:
            if key in (member.value, member.name, member.legacy_name):
                return member
        raise ConfigurationError(f"Method {name} not recognised.")

    def strategy(self) -> PlacementHeuristic:
        return _STRATEGIES[self]()


_STRATEGIES: Dict[Heuristic, type] = {
    Heuristic.BOTTOM_LEFT: BottomLeft,
    Heuristic.BEST_AREA_FIT: BestAreaFit,
    Heuristic.BEST_LONG_SIDE_FIT: BestLongSideFit,
    Heuristic.BEST_SHORT_SIDE_FIT: BestShortSideFit,
}


# ============================================================================
# PACKING ENGINE
# ============================================================================

class RectangleBinPack:
    """
    One bin packed with the maximal-rectangles method.

    The bin keeps a list of free rectangles that together cover every
    unoccupied point of its usable area.  Free rectangles may overlap each
    other; after each placement any free rectangle contained in another is
    discarded.

    The left and bottom borders reserve a strip along those edges that is
    never packed.  Set them before calling ``init()``: until ``init()`` runs
    the free list is empty and nothing can be inserted.

        bin_pack = RectangleBinPack(1120, 815, True, "BestAreaFit")
        bin_pack.set_left_border(10).set_bottom_border(10).init()
        placed = bin_pack.insert_many(items)
        leftovers = bin_pack.get_cant_pack()
    """

    def __init__(self, width: int, height: int, allow_rotation: bool = True,
                 heuristic: Union[str, Heuristic] = "BestAreaFit") -> None:
        """
        Parameters
        ----------
        width          : Bin width (positive).
        height         : Bin height (positive).
        allow_rotation : Allow items to be turned by 90°.
        heuristic      : Heuristic member or name, see ``Heuristic.parse``.

        Raises
        ------
        ConfigurationError
            If *heuristic* is not recognised.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Bin dimensions must be positive, got {width}x{height}")

        self.bin_width = width
        self.bin_height = height
        self.allow_rotation = allow_rotation
        self.heuristic = Heuristic.parse(heuristic)
        self._strategy = self.heuristic.strategy()

        self.left_border = 0
        self.bottom_border = 0

        self.used_rectangles: List[Rectangle] = []
        self.free_rectangles: List[Rectangle] = []
        self.cant_pack: List[Rectangle] = []

    def set_left_border(self, left_border: int) -> "RectangleBinPack":
        if left_border < 0:
            raise ValueError("Left border must be non-negative")
        self.left_border = left_border
        return self

    def set_bottom_border(self, bottom_border: int) -> "RectangleBinPack":
        if bottom_border < 0:
            raise ValueError("Bottom border must be non-negative")
        self.bottom_border = bottom_border
        return self

    def init(self) -> "RectangleBinPack":
        """Reset the bin to a single free rectangle covering its usable area."""
        usable_width = self.bin_width - self.left_border
        usable_height = self.bin_height - self.bottom_border

        self.used_rectangles = []
        self.cant_pack = []
        if usable_width > 0 and usable_height > 0:
            self.free_rectangles = [
                Rectangle(usable_width, usable_height, self.left_border, self.bottom_border)
            ]
        else:
            logger.warning("Borders (%d, %d) leave no usable area in a %dx%d bin",
                           self.left_border, self.bottom_border,
                           self.bin_width, self.bin_height)
            self.free_rectangles = []
        return self

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_used_rectangles(self) -> List[Rectangle]:
        return list(self.used_rectangles)

    def get_free_rectangles(self) -> List[Rectangle]:
        return list(self.free_rectangles)

    def get_cant_pack(self) -> List[Rectangle]:
        """Items left over by the most recent ``insert_many`` call."""
        return list(self.cant_pack)

    @property
    def usage(self) -> float:
        """Fraction of the whole bin area (borders included) covered by items."""
        used_area = sum(rect.covered_area for rect in self.used_rectangles)
        return used_area / (self.bin_width * self.bin_height)

    def get_usage(self) -> float:
        return self.usage

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def score_rect(self, rect: Rectangle) -> Optional[ScoredPlacement]:
        """Ask the heuristic where *rect* would go, without placing it."""
        return self._strategy.find_position(self.free_rectangles, rect, self.allow_rotation)

    def insert(self, rect: Rectangle) -> Optional[Rectangle]:
        """
        Place a single item.

        Returns
        -------
        The placed rectangle (a new instance, rotated if needed), or None
        if the item fits nowhere; the bin is unchanged in that case.
        """
        placement = self.score_rect(rect)
        if placement is None:
            return None

        self.place_rect(placement.rect)
        return placement.rect

    def insert_many(self, rects: Iterable[Rectangle]) -> List[Rectangle]:
        """
        Place as many of *rects* as possible, best match first.

        Each round scores every pending item against the current free
        space and commits only the one with the lowest score.  Placing it
        reshapes the free list, so the remaining items are re-scored in the
        next round.  Rounds stop when nothing pending fits; those items are
        then available from ``get_cant_pack()``.

        Parameters
        ----------
        rects : Items to pack.  The caller's objects are not modified.

        Returns
        -------
        Placed rectangles in the order they were committed.
        """
        self.cant_pack = []
        pending = list(rects)
        packed: List[Rectangle] = []

        while pending:
            best_index = -1
            best: Optional[ScoredPlacement] = None

            for index, rect in enumerate(pending):
                placement = self.score_rect(rect)
                if placement is None:
                    continue
                if best is None or placement.score < best.score:
                    best = placement
                    best_index = index

            if best is None:
                self.cant_pack = pending
                break

            self.place_rect(best.rect)
            packed.append(best.rect)
            del pending[best_index]

        logger.debug("Packed %d item(s), %d left over", len(packed), len(self.cant_pack))
        return packed

    # ------------------------------------------------------------------
    # Free-space maintenance
    # ------------------------------------------------------------------

    def place_rect(self, node: Rectangle) -> None:
        """
        Commit *node* to the bin.

        Every free rectangle overlapping *node* is replaced by the parts of
        it that lie outside *node*; free rectangles clear of *node* are kept
        in order.  A windowed node also returns its window to the free list.
        Redundant free rectangles are then pruned.
        """
        retained: List[Rectangle] = []
        remainders: List[Rectangle] = []
        for free_rect in self.free_rectangles:
            split = self.split_free_node(free_rect, node)
            if split is None:
                retained.append(free_rect)
            else:
                remainders.extend(split)

        if isinstance(node, WindowedRectangle):
            remainders.append(node.window_rect())

        self.free_rectangles = retained + remainders
        self.prune_free_list()

        self.used_rectangles.append(node)
        logger.debug("Placed %dx%d at (%d, %d); %d free rectangle(s)",
                     node.width, node.height, node.x, node.y, len(self.free_rectangles))

    @staticmethod
    def split_free_node(free_node: Rectangle,
                        used_node: Rectangle) -> Optional[List[Rectangle]]:
        """
        Split *free_node* around *used_node*.

        Returns None when the two do not overlap (touching edges are not an
        overlap).  Otherwise returns the maximal parts of *free_node* below,
        above, left and right of *used_node*; each part spans the full extent
        of *free_node* along the other axis, so the parts may overlap.  The
        list is empty when *used_node* covers *free_node* completely.
        """
        if (used_node.x >= free_node.right or used_node.right <= free_node.x
                or used_node.y >= free_node.top or used_node.top <= free_node.y):
            return None

        parts: List[Rectangle] = []

        if free_node.y < used_node.y < free_node.top:
            parts.append(Rectangle(free_node.width, used_node.y - free_node.y,
                                   free_node.x, free_node.y))

        if used_node.top < free_node.top:
            parts.append(Rectangle(free_node.width, free_node.top - used_node.top,
                                   free_node.x, used_node.top))

        if free_node.x < used_node.x < free_node.right:
            parts.append(Rectangle(used_node.x - free_node.x, free_node.height,
                                   free_node.x, free_node.y))

        if used_node.right < free_node.right:
            parts.append(Rectangle(free_node.right - used_node.right, free_node.height,
                                   used_node.right, free_node.y))

        return parts

    def prune_free_list(self) -> None:
        """
        Drop every free rectangle that is contained in another one.

        Single pass over the list: a rectangle inside one already kept is
        skipped, and kept rectangles inside the new one are dropped before
        it is kept.  Of two identical rectangles the first survives.
        """
        # Comparison continues after a removal, so one call leaves no
        # rectangle nested in another.
        retained: List[Rectangle] = []
        for rect in self.free_rectangles:
            if any(is_contained_in(rect, kept) for kept in retained):
                continue
            retained = [kept for kept in retained if not is_contained_in(kept, rect)]
            retained.append(rect)

        self.free_rectangles = retained


# ============================================================================
# MULTI-BIN PACKING
# ============================================================================

def pack_bins(items: Iterable[Rectangle], bin_width: int, bin_height: int,
              allow_rotation: bool = True,
              heuristic: Union[str, Heuristic] = "BestAreaFit",
              left_border: int = 0,
              bottom_border: int = 0) -> Tuple[List[RectangleBinPack], List[Rectangle]]:
    """
    Pack *items* into as many identical bins as needed.

    While items remain, a new bin is opened and the remaining items are
    offered to every bin opened so far, each bin passing on what it could
    not take.  If a freshly opened, empty bin accepts nothing, the items
    left can never be packed and the loop stops.

    Parameters
    ----------
    items          : Items to pack.
    bin_width      : Width of every bin.
    bin_height     : Height of every bin.
    allow_rotation : Allow items to be turned by 90°.
    heuristic      : Heuristic member or name.
    left_border    : Reserved strip along each bin's left edge.
    bottom_border  : Reserved strip along each bin's bottom edge.

    Returns
    -------
    (bins, unpackable): the bins holding at least one item, and the items
    too large for an empty bin.
    """
    heuristic = Heuristic.parse(heuristic)

    bins: List[RectangleBinPack] = []
    to_pack = list(items)

    while to_pack:
        new_bin = (RectangleBinPack(bin_width, bin_height, allow_rotation, heuristic)
                   .set_left_border(left_border)
                   .set_bottom_border(bottom_border)
                   .init())
        bins.append(new_bin)

        for bin_pack in bins:
            bin_pack.insert_many(to_pack)
            to_pack = bin_pack.get_cant_pack()

        if not new_bin.used_rectangles:
            bins.pop()
            for rect in to_pack:
                logger.warning("Item %dx%d does not fit in an empty %dx%d bin",
                               rect.width, rect.height, bin_width, bin_height)
            break

    return bins, to_pack


# ============================================================================
# CSV PARSER
# ============================================================================

def parse_csv(filename: str) -> List[Rectangle]:
    """
    Parse a CSV file into items ready for packing.

    The delimiter and quote character are detected with ``csv.Sniffer``;
    if sniffing fails, semicolons with double-quote quoting are assumed.

    ==============  =====================================  ========
    Column          Aliases                                Required
    ==============  =====================================  ========
    QUANTITY        QTY, COUNT                             yes
    WIDTH           W                                      yes
    HEIGHT          H                                      yes
    LABEL           NAME, ID                               no
    WINDOW WIDTH    WINDOW W                               no
    WINDOW HEIGHT   WINDOW H                               no
    LEFT BORDER     WINDOW LEFT                            no
    BOTTOM BORDER   WINDOW BOTTOM                          no
    ==============  =====================================  ========

    Every row yields ``QUANTITY`` independent item instances.  Rows with
    both window columns filled in yield WindowedRectangle items.  Rows that
    cannot be parsed are skipped with a warning.

    Returns
    -------
    List of items; empty if the file is empty or required columns are
    missing.  A missing file raises FileNotFoundError.
    """
    items: List[Rectangle] = []

    with open(filename, 'r', encoding='utf-8', newline='') as f:
        sample = f.read(4096)
        f.seek(0)
        delimiter = ';'
        quotechar = '"'
        try:
            detected = csv.Sniffer().sniff(sample, delimiters=',;\t|')
            delimiter = detected.delimiter
            quotechar = detected.quotechar or '"'
        except csv.Error:
            print(f"  ⚠️  Warning: CSV dialect detection failed, "
                  f"using delimiter={delimiter!r} quotechar={quotechar!r}")

        reader = csv.reader(f, delimiter=delimiter, quotechar=quotechar,
                            skipinitialspace=True)

        header = next(reader, None)
        if not header:
            print("Error: Empty CSV file")
            return []

        header = [h.strip().strip('"').upper() for h in header]
        field_map = {name: i for i, name in enumerate(header)}

        columns = {
            'QUANTITY': ['QUANTITY', 'QTY', 'COUNT'],
            'WIDTH': ['WIDTH', 'W'],
            'HEIGHT': ['HEIGHT', 'H'],
            'LABEL': ['LABEL', 'NAME', 'ID'],
            'WINDOW_WIDTH': ['WINDOW WIDTH', 'WINDOW W'],
            'WINDOW_HEIGHT': ['WINDOW HEIGHT', 'WINDOW H'],
            'LEFT_BORDER': ['LEFT BORDER', 'WINDOW LEFT'],
            'BOTTOM_BORDER': ['BOTTOM BORDER', 'WINDOW BOTTOM'],
        }
        required = ('QUANTITY', 'WIDTH', 'HEIGHT')

        indices: Dict[str, int] = {}
        for key, names in columns.items():
            for name in names:
                if name in field_map:
                    indices[key] = field_map[name]
                    break
            if key in required and key not in indices:
                print(f"Error: Required field not found. Looking for one of: {names}")
                print(f"Available fields: {header}")
                return []

        def cell(row, key) -> str:
            index = indices.get(key)
            if index is None or index >= len(row):
                return ''
            return row[index].strip()

        row_num = 1
        for row in reader:
            row_num += 1

            if not row or all(not c.strip() for c in row):
                continue

            try:
                quantity = int(cell(row, 'QUANTITY'))
                width = int(cell(row, 'WIDTH'))
                height = int(cell(row, 'HEIGHT'))
                label = cell(row, 'LABEL')
                window_width = cell(row, 'WINDOW_WIDTH')
                window_height = cell(row, 'WINDOW_HEIGHT')
                if bool(window_width) != bool(window_height):
                    raise ValueError("window width and height must be given together")

                for _ in range(quantity):
                    if window_width and window_height:
                        items.append(WindowedRectangle(
                            width, height,
                            label=label,
                            window=Rectangle(int(window_width), int(window_height)),
                            left_border=int(cell(row, 'LEFT_BORDER') or 0),
                            bottom_border=int(cell(row, 'BOTTOM_BORDER') or 0)))
                    else:
                        items.append(Rectangle(width, height, label=label))

                kind = "windowed " if window_width and window_height else ""
                print(f"  Row {row_num}: {quantity}x {kind}{width}x{height} '{label}'")

            except ValueError as e:
                print(f"Warning: Skipping invalid row {row_num}: {e}")
                print(f"  Row data: {row}")
                continue

    return items


# ============================================================================
# CONFIGURATION
# ============================================================================

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                                   'rectpacker.conf')

DEFAULT_CONFIG = {
    'bin': {
        'width': '1120',
        'height': '815',
        'heuristic': 'BestAreaFit',
        'allow_rotation': 'yes',
        'left_border': '0',
        'bottom_border': '0',
    },
    'colors': {
        'used': '#90caf9',
        'window': '#1565c0',
        'free': '#43a047',
        'border': '#bdbdbd',
        'outline': '#0d47a1',
        'text': '#263238',
    },
    'render': {
        'show_free': 'no',
        'caption_height': '12',
        'stroke_width': '1',
    },
    'font': {
        'path': '',
    },
}


def load_config(path: Optional[str] = None) -> configparser.ConfigParser:
    """
    Build the configuration: built-in defaults overlaid with *path*.

    Every key in DEFAULT_CONFIG is always present, so callers can use
    ``cfg.getint('bin', 'width')`` etc. without fallbacks.  When *path* is
    None only the defaults are returned; a path that does not exist is
    reported and ignored.
    """
    cfg = configparser.ConfigParser()
    cfg.read_dict(DEFAULT_CONFIG)

    if path is None:
        return cfg

    if os.path.exists(path):
        cfg.read(path, encoding='utf-8')
        print(f"  → Loaded config: {path}")
    else:
        print(f"  ⚠️  Config file not found: {path} (using built-in defaults)")
    return cfg


# ============================================================================
# SVG RENDERER
# ============================================================================

class SVGRenderer:
    """
    Render a packed RectangleBinPack as an SVG document.

    Named groups, in draw order (back to front):

    =========  ====================================================
    Group id   Content
    =========  ====================================================
    borders    Reserved left/bottom strips of the bin.
    used       Placed items; windowed items are drawn with their
               window cut out (even-odd fill).
    windows    Outline of every window cut-out.
    free       Dashed free rectangles (only with render.show_free).
    captions   Each item's label, or WxH, as filled font outlines.
    =========  ====================================================

    The bin uses a bottom-left origin; SVG coordinates grow downwards,
    so every Y is flipped against the bin height.
    """

    FONT_CANDIDATES = [
        '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',
        '/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',
        '/System/Library/Fonts/Helvetica.ttc',
        'C:\\Windows\\Fonts\\arial.ttf',
    ]

    def __init__(self, bin_pack: RectangleBinPack,
                 cfg: Optional[configparser.ConfigParser] = None) -> None:
        self.bin = bin_pack
        self.cfg = cfg if cfg is not None else load_config()
        self.font = self._load_font()

    def _load_font(self) -> Optional[TTFont]:
        """Load the configured font, else the first system font found."""
        configured = self.cfg.get('font', 'path').strip()
        candidates = [configured] if configured else []
        candidates += self.FONT_CANDIDATES

        for font_path in candidates:
            if not os.path.exists(font_path):
                continue
            try:
                font = TTFont(font_path, fontNumber=0)
            except (OSError, TTLibError) as e:
                logger.debug("Cannot load font %s: %s", font_path, e)
                continue
            logger.debug("Loaded font %s", font_path)
            return font

        logger.warning("No usable font found; captions will be omitted")
        return None

    def _flip_y(self, rect: Rectangle) -> float:
        return self.bin.bin_height - rect.top

    def _rect_path(self, rect: Rectangle) -> str:
        x, y = rect.x, self._flip_y(rect)
        return f"M {x},{y} h {rect.width} v {rect.height} h {-rect.width} Z"

    def generate(self) -> str:
        """
        Render the bin to an SVG string.

        Returns
        -------
        Complete SVG document, with a metadata comment (heuristic, piece
        count, usage) right after the XML declaration.
        """
        width = self.bin.bin_width
        height = self.bin.bin_height
        colors = self.cfg['colors']
        stroke = self.cfg.getfloat('render', 'stroke_width')

        dwg = svgwrite.Drawing(size=(f"{width}mm", f"{height}mm"),
                               viewBox=f"0 0 {width} {height}")
        dwg.defs.add(dwg.style(f"""
            .border {{ fill: {colors['border']}; stroke: none; }}
            .used {{ fill: {colors['used']}; fill-rule: evenodd; stroke: {colors['outline']}; stroke-width: {stroke}; }}
            .window {{ fill: none; stroke: {colors['window']}; stroke-width: {stroke}; stroke-dasharray: {stroke * 4},{stroke * 2}; }}
            .free {{ fill: none; stroke: {colors['free']}; stroke-width: {stroke}; stroke-dasharray: {stroke * 2},{stroke * 2}; }}
            .caption {{ fill: {colors['text']}; stroke: none; }}
        """))

        borders_group = dwg.g(id='borders')
        if self.bin.left_border:
            borders_group.add(dwg.rect(insert=(0, 0),
                                       size=(min(self.bin.left_border, width), height),
                                       class_='border'))
        if self.bin.bottom_border:
            strip = min(self.bin.bottom_border, height)
            borders_group.add(dwg.rect(insert=(0, height - strip),
                                       size=(width, strip),
                                       class_='border'))
        dwg.add(borders_group)

        used_group = dwg.g(id='used')
        windows_group = dwg.g(id='windows')
        for rect in self.bin.used_rectangles:
            d = self._rect_path(rect)
            if isinstance(rect, WindowedRectangle):
                window = rect.window_rect()
                d += ' ' + self._rect_path(window)
                windows_group.add(dwg.rect(insert=(window.x, self._flip_y(window)),
                                           size=(window.width, window.height),
                                           class_='window'))
            used_group.add(dwg.path(d=d, class_='used'))
        dwg.add(used_group)
        dwg.add(windows_group)

        free_group = dwg.g(id='free')
        if self.cfg.getboolean('render', 'show_free'):
            for rect in self.bin.free_rectangles:
                free_group.add(dwg.rect(insert=(rect.x, self._flip_y(rect)),
                                        size=(rect.width, rect.height),
                                        class_='free'))
        dwg.add(free_group)

        captions_group = dwg.g(id='captions')
        for rect in self.bin.used_rectangles:
            d = self._caption_path(rect)
            if d:
                captions_group.add(dwg.path(d=d, class_='caption'))
        dwg.add(captions_group)

        svg_string = dwg.tostring()

        metadata_comment = f"""
<!-- Rectangle Bin Packer -->
<!-- Heuristic: {self.bin.heuristic.value} -->
<!-- Pieces: {len(self.bin.used_rectangles)} -->
<!-- Usage: {self.bin.usage * 100:.1f}% -->
"""
        if svg_string.startswith('<?xml'):
            xml_decl_end = svg_string.find('?>') + 2
            svg_string = svg_string[:xml_decl_end] + metadata_comment + svg_string[xml_decl_end:]
        else:
            svg_string = metadata_comment + svg_string

        return svg_string

    def _caption_path(self, rect: Rectangle) -> str:
        """
        Path data for the caption of one placed item, or '' if none fits.

        Plain items are captioned in their centre.  Windowed items are
        captioned in the strip below their window, if there is one.
        """
        if self.font is None:
            return ''

        text = rect.label or f"{rect.width}x{rect.height}"
        if isinstance(rect, WindowedRectangle):
            box_height = rect.bottom_border
        else:
            box_height = rect.height
        size = min(self.cfg.getfloat('render', 'caption_height'), box_height * 0.6)
        if size <= 0:
            return ''

        text_width = self._measure_text_width(text, size)
        if text_width > rect.width * 0.9:
            size *= rect.width * 0.9 / text_width
            text_width = rect.width * 0.9

        # Baseline in SVG coordinates, vertically centred in the caption box.
        box_bottom = self.bin.bin_height - rect.y
        baseline = box_bottom - (box_height - size) / 2
        start_x = rect.x + (rect.width - text_width) / 2
        return self._text_path(text, start_x, baseline, size)

    def _measure_text_width(self, text: str, size: float) -> float:
        scale = size / self.font['head'].unitsPerEm
        cmap = self.font.getBestCmap() or {}
        glyph_set = self.font.getGlyphSet()

        total = 0.0
        for char in text:
            glyph_name = cmap.get(ord(char))
            if glyph_name and glyph_name in glyph_set:
                total += glyph_set[glyph_name].width * scale
            else:
                total += size * 0.5
        return total

    def _text_path(self, text: str, x: float, baseline: float, size: float) -> str:
        """
        Draw *text* starting at (*x*, *baseline*) into a single SVG path.

        Each glyph goes through a TransformPen with the matrix
        ``(scale, 0, 0, -scale, current_x, baseline)``, which scales font
        units to drawing units and flips the font's y-up outlines.
        """
        scale = size / self.font['head'].unitsPerEm
        cmap = self.font.getBestCmap() or {}
        glyph_set = self.font.getGlyphSet()

        pen = SVGPathPen(glyph_set)
        current_x = x
        for char in text:
            glyph_name = cmap.get(ord(char))
            if glyph_name and glyph_name in glyph_set:
                glyph = glyph_set[glyph_name]
                glyph.draw(TransformPen(pen, (scale, 0, 0, -scale, current_x, baseline)))
                current_x += glyph.width * scale
            else:
                current_x += size * 0.5
        return pen.getCommands()


# ============================================================================
# MAIN FUNCTION
# ============================================================================

def generate_bin_layouts(csv_file: str, bin_width: int, bin_height: int,
                         output_prefix: str = "output/bin",
                         heuristic: Optional[Union[str, Heuristic]] = None,
                         allow_rotation: Optional[bool] = None,
                         left_border: Optional[int] = None,
                         bottom_border: Optional[int] = None,
                         cfg: Optional[configparser.ConfigParser] = None) -> List[str]:
    """
    Full pipeline: parse CSV → pack into bins → emit one SVG per bin.

    Parameters
    ----------
    csv_file       : Path to the item CSV.
    bin_width      : Bin width.
    bin_height     : Bin height.
    output_prefix  : Prefix for output files; bins are written to
                     ``{output_prefix}_{n}.svg`` (n from 1).  The directory
                     is created if needed.
    heuristic      : Heuristic name; None takes ``[bin] heuristic``.
    allow_rotation : None takes ``[bin] allow_rotation``.
    left_border    : None takes ``[bin] left_border``.
    bottom_border  : None takes ``[bin] bottom_border``.
    cfg            : Configuration; None uses the built-in defaults.

    Returns
    -------
    List of written SVG file names, in bin order.
    """
    if cfg is None:
        cfg = load_config()
    if heuristic is None:
        heuristic = cfg.get('bin', 'heuristic')
    if allow_rotation is None:
        allow_rotation = cfg.getboolean('bin', 'allow_rotation')
    if left_border is None:
        left_border = cfg.getint('bin', 'left_border')
    if bottom_border is None:
        bottom_border = cfg.getint('bin', 'bottom_border')
    heuristic = Heuristic.parse(heuristic)

    print("=" * 70)
    print("RECTANGLE BIN PACKER")
    print("=" * 70)
    print(f"\nReading items from: {csv_file}")
    print(f"Bin size: {bin_width} x {bin_height} "
          f"(borders: left {left_border}, bottom {bottom_border})")
    print()

    items = parse_csv(csv_file)

    if not items:
        print("\n❌ Error: No valid items found in CSV")
        return []

    total_area = sum(item.covered_area for item in items)
    print(f"\n✅ Items to pack: {len(items)}")
    print(f"✅ Total item area: {total_area}")

    print(f"\n{'─' * 70}")
    print("PACKING")
    print(f"{'─' * 70}")
    print(f"Heuristic: {heuristic.value}")
    print(f"Rotation: {'allowed' if allow_rotation else 'disabled'}")
    print()

    bins, unpackable = pack_bins(items, bin_width, bin_height, allow_rotation,
                                 heuristic, left_border, bottom_border)

    packed_area = sum(rect.covered_area for b in bins for rect in b.used_rectangles)
    overall_usage = packed_area / (len(bins) * bin_width * bin_height) if bins else 0
    print(f"✅ Bins required: {len(bins)}")
    print(f"✅ Overall usage: {overall_usage * 100:.1f}%")
    for rect in unpackable:
        print(f"  ⚠️  Item {rect.width}x{rect.height} '{rect.label}' "
              f"does not fit in a {bin_width}x{bin_height} bin, skipped")

    print(f"\n{'─' * 70}")
    print("GENERATING SVG FILES")
    print(f"{'─' * 70}")

    output_files = []
    for number, bin_pack in enumerate(bins, start=1):
        filename = f"{output_prefix}_{number}.svg"

        out_dir = os.path.dirname(filename)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)

        svg_content = SVGRenderer(bin_pack, cfg).generate()
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(svg_content)

        output_files.append(filename)

        print(f"\n📄 {filename}")
        print(f"   Pieces: {len(bin_pack.used_rectangles)}")
        print(f"   Usage: {bin_pack.usage * 100:.1f}%")

    print(f"\n{'═' * 70}")
    print(f"✅ SUCCESS: Generated {len(output_files)} SVG file(s)")
    print(f"{'═' * 70}")

    print("\nSUMMARY BY SIZE:")
    size_summary: Dict[Tuple[int, int], int] = defaultdict(int)
    for bin_pack in bins:
        for rect in bin_pack.used_rectangles:
            size_summary[tuple(sorted((rect.width, rect.height)))] += 1
    for (short, long), count in sorted(size_summary.items()):
        print(f"  • {short}x{long}: {count} piece(s)")
    print()

    return output_files


# ============================================================================
# CLI INTERFACE
# ============================================================================

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Pack rectangular items into bins and write SVG layouts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python rectpacker.py ITEMS.csv 1120 815
  python rectpacker.py ITEMS.csv 1120 815 --heuristic BottomLeft
  python rectpacker.py ITEMS.csv 1120 815 --no-rotation --left-border 10
  python rectpacker.py ITEMS.csv 1120 815 --config my.conf --show-free

CSV Format:
  "QUANTITY";"WIDTH";"HEIGHT";"LABEL";"WINDOW WIDTH";"WINDOW HEIGHT";"LEFT BORDER";"BOTTOM BORDER"

Output SVG layers:
  borders, used, windows, free (--show-free), captions
        """
    )

    parser.add_argument("csv_file", help="Input CSV file path")
    parser.add_argument("width", type=int, help="Bin width")
    parser.add_argument("height", type=int, help="Bin height")
    parser.add_argument("-o", "--output", default="output/bin",
                        help="Output path prefix (default: output/bin). "
                             "The directory is created automatically.")
    parser.add_argument("--heuristic", choices=[h.value for h in Heuristic],
                        help="Placement heuristic (default: from config, BestAreaFit)")
    parser.add_argument("--rotation", action=argparse.BooleanOptionalAction,
                        default=None,
                        help="Allow 90° rotation of items (default: from config)")
    parser.add_argument("--left-border", type=int, metavar="N",
                        help="Reserved strip along the left edge")
    parser.add_argument("--bottom-border", type=int, metavar="N",
                        help="Reserved strip along the bottom edge")
    parser.add_argument("--show-free", action="store_true",
                        help="Draw the remaining free rectangles")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH,
                        help="INI configuration file (default: rectpacker.conf)")

    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    try:
        config = load_config(args.config)
        if args.show_free:
            config.set('render', 'show_free', 'yes')
        generate_bin_layouts(args.csv_file, args.width, args.height,
                             args.output, args.heuristic, args.rotation,
                             args.left_border, args.bottom_border, config)
    except FileNotFoundError:
        print(f"\n❌ Error: File '{args.csv_file}' not found")
        sys.exit(1)
    except ConfigurationError as e:
        print(f"\n❌ Configuration error: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"\n❌ Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
