"""
Shared configuration and constants.
"""

import dataclasses


POINTS_PER_MM = 72.0 / 25.4

A4_PAGE_WIDTH = 210.0
A4_PAGE_HEIGHT = 297.0
LETTER_PAGE_WIDTH = 215.9
LETTER_PAGE_HEIGHT = 279.4
DEFAULT_MARGIN = 10.0

DEFAULT_LABEL_WIDTH = 90.0
DEFAULT_LABEL_HEIGHT = 50.0

BARCODE_BOX_WIDTH = 40.0
BARCODE_BOX_HEIGHT = 40.0
LABEL_PADDING = 5.0

TITLE_OFFSET_Y = 7.0
TITLE_FONT_SIZE = 12.0
TEXT_START_WITH_TITLE = 15.0
TEXT_START_WITHOUT_TITLE = 7.0
VALUE_OFFSET_X = 20.0

PRIMARY_FONT_SIZE = 10.0
PRIMARY_LINE_HEIGHT = 5.0
SECONDARY_FONT_SIZE = 8.0
SECONDARY_LINE_HEIGHT = 4.0

DEFAULT_FONT_REGULAR = "Helvetica"
DEFAULT_FONT_BOLD = "Helvetica-Bold"
OUTLINE_LINE_WIDTH = 0.3
BORDER_LINE_WIDTH = 0.5
PROGRESS_BAR_WIDTH = 20

IMAGE_KEY = "barcodeUrl"
TITLE_KEY = "title"
QUANTITY_KEY = "quantity"
LABEL_WIDTH_KEY = "labelWidth"
LABEL_HEIGHT_KEY = "labelHeight"
SHOW_BORDER_KEY = "showBorder"
META_KEYS = frozenset({
	IMAGE_KEY,
	TITLE_KEY,
	QUANTITY_KEY,
	LABEL_WIDTH_KEY,
	LABEL_HEIGHT_KEY,
	SHOW_BORDER_KEY,
})

# the barcode field is already shown by the image
IMAGE_FIELD = "barcode"
PRIMARY_KEYS = frozenset({"barcode", "id", "code", "name", "type"})


@dataclasses.dataclass(frozen=True)
class PageGeometry:
	width: float = A4_PAGE_WIDTH
	height: float = A4_PAGE_HEIGHT
	margin: float = DEFAULT_MARGIN

	@property
	def usable_width(self) -> float:
		return self.width - 2.0 * self.margin

	@property
	def usable_height(self) -> float:
		return self.height - 2.0 * self.margin


@dataclasses.dataclass(frozen=True)
class LabelGeometry:
	width: float = DEFAULT_LABEL_WIDTH
	height: float = DEFAULT_LABEL_HEIGHT


@dataclasses.dataclass(frozen=True)
class SheetGeometry:
	page: PageGeometry = dataclasses.field(default_factory=PageGeometry)
	label: LabelGeometry = dataclasses.field(default_factory=LabelGeometry)


@dataclasses.dataclass(frozen=True)
class LayoutSummary:
	quantity: int
	pages: int
	labels_per_page: int
	columns: int
	rows: int
	last_page_labels: int


PAGE_SIZES = {
	"a4": PageGeometry(A4_PAGE_WIDTH, A4_PAGE_HEIGHT, DEFAULT_MARGIN),
	"letter": PageGeometry(LETTER_PAGE_WIDTH, LETTER_PAGE_HEIGHT, DEFAULT_MARGIN),
}


#============================================
def mm_to_points(value: float) -> float:
	"""
	Convert millimetres to points.

	Args:
		value: Millimetres value.

	Returns:
		Points value.
	"""
	return value * POINTS_PER_MM
