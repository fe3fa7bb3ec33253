"""
Sheet layout: tile repeated labels across fixed-size pages.

Coordinates are millimetres with the origin at the top-left corner of the
page and y growing downward. Text y values are baselines.
"""

# Standard Library
import collections.abc
import dataclasses
import math

# local repo modules
import textile_labels as tlab
import textile_labels.config
import textile_labels.templates


PageGeometry = tlab.config.PageGeometry
LabelGeometry = tlab.config.LabelGeometry
SheetGeometry = tlab.config.SheetGeometry
LayoutSummary = tlab.config.LayoutSummary
LabelTemplate = tlab.templates.LabelTemplate
fill_placeholders = tlab.templates.fill_placeholders

META_KEYS = tlab.config.META_KEYS
PRIMARY_KEYS = tlab.config.PRIMARY_KEYS
IMAGE_KEY = tlab.config.IMAGE_KEY
IMAGE_FIELD = tlab.config.IMAGE_FIELD
TITLE_KEY = tlab.config.TITLE_KEY
QUANTITY_KEY = tlab.config.QUANTITY_KEY
LABEL_WIDTH_KEY = tlab.config.LABEL_WIDTH_KEY
LABEL_HEIGHT_KEY = tlab.config.LABEL_HEIGHT_KEY
SHOW_BORDER_KEY = tlab.config.SHOW_BORDER_KEY
BARCODE_BOX_WIDTH = tlab.config.BARCODE_BOX_WIDTH
BARCODE_BOX_HEIGHT = tlab.config.BARCODE_BOX_HEIGHT
LABEL_PADDING = tlab.config.LABEL_PADDING
TITLE_OFFSET_Y = tlab.config.TITLE_OFFSET_Y
TITLE_FONT_SIZE = tlab.config.TITLE_FONT_SIZE
TEXT_START_WITH_TITLE = tlab.config.TEXT_START_WITH_TITLE
TEXT_START_WITHOUT_TITLE = tlab.config.TEXT_START_WITHOUT_TITLE
VALUE_OFFSET_X = tlab.config.VALUE_OFFSET_X
PRIMARY_FONT_SIZE = tlab.config.PRIMARY_FONT_SIZE
PRIMARY_LINE_HEIGHT = tlab.config.PRIMARY_LINE_HEIGHT
SECONDARY_FONT_SIZE = tlab.config.SECONDARY_FONT_SIZE
SECONDARY_LINE_HEIGHT = tlab.config.SECONDARY_LINE_HEIGHT


class LayoutError(ValueError):
	"""
	Raised when a label job cannot be laid out.
	"""


class ConfigurationError(LayoutError):
	"""
	Raised when the label geometry does not fit the page geometry.
	"""


@dataclasses.dataclass(frozen=True)
class Field:
	key: str
	value: object


@dataclasses.dataclass(frozen=True)
class FieldGroups:
	primary: tuple[Field, ...]
	secondary: tuple[Field, ...]


@dataclasses.dataclass(frozen=True)
class SheetGrid:
	columns: int
	rows: int
	per_page: int
	usable_width: float
	usable_height: float


@dataclasses.dataclass(frozen=True)
class BorderInstruction:
	x: float
	y: float
	width: float
	height: float
	kind: str = "border"


@dataclasses.dataclass(frozen=True)
class TextInstruction:
	x: float
	y: float
	text: str
	font_size: float
	bold: bool
	kind: str = "text"


@dataclasses.dataclass(frozen=True)
class ImageInstruction:
	x: float
	y: float
	width: float
	height: float
	source: object
	kind: str = "image"


@dataclasses.dataclass(frozen=True)
class FieldInstruction:
	x: float
	y: float
	label: str
	value: str
	font_size: float
	value_x: float
	tier: str
	kind: str = "field"


@dataclasses.dataclass(frozen=True)
class Slot:
	page_index: int
	row: int
	column: int
	x: float
	y: float
	width: float
	height: float
	instructions: tuple

	@property
	def box(self) -> tuple[float, float, float, float]:
		return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclasses.dataclass(frozen=True)
class Page:
	index: int
	slots: tuple[Slot, ...]


#============================================
def record_fields(record) -> list[Field]:
	"""
	Turn a record into an ordered list of fields.

	Args:
		record: Mapping (insertion ordered) or sequence of (key, value) pairs.

	Returns:
		Fields in input order.
	"""
	if record is None:
		return []
	if isinstance(record, collections.abc.Mapping):
		pairs = record.items()
	else:
		pairs = record
	return [Field(str(key), value) for key, value in pairs]


#============================================
def record_meta(fields: list[Field]) -> dict[str, object]:
	"""
	Collect the meta keys of a record, first occurrence wins.
	"""
	meta: dict[str, object] = {}
	for field in fields:
		if field.key in META_KEYS and field.key not in meta:
			meta[field.key] = field.value
	return meta


#============================================
def is_nested(value: object) -> bool:
	if isinstance(value, (str, bytes)):
		return False
	return isinstance(value, (collections.abc.Mapping, collections.abc.Iterable))


#============================================
def has_image_reference(value: object) -> bool:
	if value is None:
		return False
	if isinstance(value, (str, bytes)):
		return len(value.strip()) > 0
	return True


#============================================
def normalize_quantity(value: object) -> int:
	"""
	Normalize a requested quantity.

	Missing, boolean, non-numeric, zero or negative values become 1.

	Args:
		value: Raw quantity.

	Returns:
		Positive quantity.
	"""
	if value is None or isinstance(value, bool):
		return 1
	if isinstance(value, int):
		quantity = value
	elif isinstance(value, float):
		if not math.isfinite(value):
			return 1
		quantity = int(value)
	elif isinstance(value, str):
		try:
			quantity = int(value.strip())
		except ValueError:
			return 1
	else:
		return 1
	if quantity < 1:
		return 1
	return quantity


#============================================
def _positive_number(value: object) -> float | None:
	if isinstance(value, bool):
		return None
	if isinstance(value, (int, float)):
		number = float(value)
	elif isinstance(value, str):
		try:
			number = float(value.strip())
		except ValueError:
			return None
	else:
		return None
	if not math.isfinite(number) or number <= 0.0:
		return None
	return number


#============================================
def resolve_label_geometry(meta: dict[str, object], default: LabelGeometry) -> LabelGeometry:
	"""
	Apply per-record label size overrides.

	Args:
		meta: Record meta values.
		default: Label geometry used when the record has no valid override.

	Returns:
		LabelGeometry.
	"""
	width = _positive_number(meta.get(LABEL_WIDTH_KEY))
	height = _positive_number(meta.get(LABEL_HEIGHT_KEY))
	return LabelGeometry(
		width=width if width is not None else default.width,
		height=height if height is not None else default.height,
	)


#============================================
def compute_grid(page: PageGeometry, label: LabelGeometry) -> SheetGrid:
	"""
	Compute how many label slots fit on a page.

	Args:
		page: Page geometry.
		label: Label geometry.

	Returns:
		SheetGrid.

	Raises:
		ConfigurationError: When no label fits inside the usable area.
	"""
	usable_width = page.usable_width
	usable_height = page.usable_height
	if usable_width <= 0.0 or usable_height <= 0.0:
		raise ConfigurationError(
			f"Page {page.width:g}x{page.height:g} has no usable area with margin {page.margin:g}"
		)
	if label.width <= 0.0 or label.height <= 0.0:
		raise ConfigurationError(
			f"Label size must be positive, got {label.width:g}x{label.height:g}"
		)
	columns = math.floor(usable_width / label.width)
	rows = math.floor(usable_height / label.height)
	per_page = columns * rows
	if per_page == 0:
		raise ConfigurationError(
			f"Label {label.width:g}x{label.height:g} does not fit usable area "
			f"{usable_width:g}x{usable_height:g}"
		)
	return SheetGrid(
		columns=columns,
		rows=rows,
		per_page=per_page,
		usable_width=usable_width,
		usable_height=usable_height,
	)


#============================================
def iter_slot_positions(
	grid: SheetGrid,
	page: PageGeometry,
	label: LabelGeometry,
	quantity: int,
):
	"""
	Yield slot positions in row-major order, page by page.

	Args:
		grid: Sheet grid.
		page: Page geometry.
		label: Label geometry.
		quantity: Number of labels to place.

	Yields:
		Tuples of (page_index, row, column, x, y).
	"""
	total_pages = math.ceil(quantity / grid.per_page)
	emitted = 0
	for page_index in range(total_pages):
		for row in range(grid.rows):
			for column in range(grid.columns):
				emitted += 1
				if emitted > quantity:
					return
				x = page.margin + column * label.width
				y = page.margin + row * label.height
				yield (page_index, row, column, x, y)


#============================================
def classify_fields(fields: list[Field]) -> FieldGroups:
	"""
	Split renderable fields into primary and secondary groups.

	Meta keys and nested structures are dropped. None is kept as a primary
	field and dropped from the secondary group. Input order is kept inside
	each group.

	Args:
		fields: Record fields.

	Returns:
		FieldGroups.
	"""
	primary: list[Field] = []
	secondary: list[Field] = []
	for field in fields:
		if field.key in META_KEYS:
			continue
		if is_nested(field.value):
			continue
		if field.key in PRIMARY_KEYS:
			primary.append(field)
		elif field.value is not None:
			secondary.append(field)
	return FieldGroups(primary=tuple(primary), secondary=tuple(secondary))


#============================================
def field_label(key: str) -> str:
	return key[:1].upper() + key[1:] + ": "


#============================================
def format_value(value: object) -> str:
	if value is None:
		return "null"
	if isinstance(value, bool):
		return "true" if value else "false"
	return str(value)


#============================================
def resolve_title(meta: dict[str, object], fields: list[Field]) -> str:
	"""
	Pick the title text for a label.

	Only the record title is used; build_record applies template titles.

	Args:
		meta: Record meta values.
		fields: Record fields used for placeholders.

	Returns:
		Title text, empty when the label has no title.
	"""
	title = meta.get(TITLE_KEY)
	if not title:
		return ""
	values = {field.key: field.value for field in fields}
	return fill_placeholders(str(title), values)


#============================================
def build_slot_instructions(
	x: float,
	y: float,
	label: LabelGeometry,
	title: str,
	image_source: object,
	show_border: bool,
	groups: FieldGroups,
) -> tuple:
	"""
	Build the ordered draw instructions for one slot.

	Args:
		x: Slot origin x.
		y: Slot origin y.
		label: Label geometry.
		title: Title text, empty for none.
		image_source: Image reference or None.
		show_border: Whether to outline the slot.
		groups: Classified fields.

	Returns:
		Tuple of draw instructions.
	"""
	instructions: list = []
	if show_border:
		instructions.append(BorderInstruction(x, y, label.width, label.height))
	if title:
		instructions.append(
			TextInstruction(x + LABEL_PADDING, y + TITLE_OFFSET_Y, title, TITLE_FONT_SIZE, True)
		)
	has_image = has_image_reference(image_source)
	if has_image:
		instructions.append(
			ImageInstruction(
				x + label.width - BARCODE_BOX_WIDTH - LABEL_PADDING,
				y + LABEL_PADDING,
				BARCODE_BOX_WIDTH,
				BARCODE_BOX_HEIGHT,
				image_source,
			)
		)

	text_x = x + LABEL_PADDING
	value_x = text_x + VALUE_OFFSET_X
	text_y = y + (TEXT_START_WITH_TITLE if title else TEXT_START_WITHOUT_TITLE)
	for field in groups.primary:
		if field.key == IMAGE_FIELD and has_image:
			continue
		instructions.append(
			FieldInstruction(
				text_x,
				text_y,
				field_label(field.key),
				format_value(field.value),
				PRIMARY_FONT_SIZE,
				value_x,
				"primary",
			)
		)
		text_y += PRIMARY_LINE_HEIGHT
	for field in groups.secondary:
		instructions.append(
			FieldInstruction(
				text_x,
				text_y,
				field_label(field.key),
				format_value(field.value),
				SECONDARY_FONT_SIZE,
				value_x,
				"secondary",
			)
		)
		text_y += SECONDARY_LINE_HEIGHT
	return tuple(instructions)


#============================================
def layout(
	template: LabelTemplate | None,
	record,
	geometry: SheetGeometry | None = None,
) -> list[Page]:
	"""
	Lay out `quantity` identical copies of a label across pages.

	Args:
		template: Template the record was built from, or None. Template
			titles and fields reach the layout through build_record.
		record: Record mapping or sequence of (key, value) pairs.
		geometry: Page and label geometry, defaults to A4 with 90x50 labels.

	Returns:
		List of pages, the last one possibly partial.

	Raises:
		ConfigurationError: When no label fits on the page.
	"""
	if geometry is None:
		geometry = SheetGeometry()
	fields = record_fields(record)
	meta = record_meta(fields)
	label = resolve_label_geometry(meta, geometry.label)
	grid = compute_grid(geometry.page, label)
	quantity = normalize_quantity(meta.get(QUANTITY_KEY))

	groups = classify_fields(fields)
	title = resolve_title(meta, fields)
	image_source = meta.get(IMAGE_KEY)
	show_border = bool(meta.get(SHOW_BORDER_KEY))

	pages_slots: list[list[Slot]] = []
	for page_index, row, column, x, y in iter_slot_positions(grid, geometry.page, label, quantity):
		if page_index == len(pages_slots):
			pages_slots.append([])
		instructions = build_slot_instructions(
			x,
			y,
			label,
			title,
			image_source,
			show_border,
			groups,
		)
		pages_slots[page_index].append(
			Slot(page_index, row, column, x, y, label.width, label.height, instructions)
		)
	return [Page(index, tuple(slots)) for index, slots in enumerate(pages_slots)]


#============================================
def summarize(pages: list[Page], grid: SheetGrid) -> LayoutSummary:
	"""
	Summarize a layout for reporting.

	Args:
		pages: Layout pages.
		grid: Sheet grid used for the layout.

	Returns:
		LayoutSummary.
	"""
	quantity = sum(len(page.slots) for page in pages)
	last_page_labels = len(pages[-1].slots) if pages else 0
	return LayoutSummary(
		quantity=quantity,
		pages=len(pages),
		labels_per_page=grid.per_page,
		columns=grid.columns,
		rows=grid.rows,
		last_page_labels=last_page_labels,
	)


#============================================
def grid_for_record(record, geometry: SheetGeometry | None = None) -> SheetGrid:
	"""
	Compute the grid a record would be laid out on.
	"""
	if geometry is None:
		geometry = SheetGeometry()
	meta = record_meta(record_fields(record))
	label = resolve_label_geometry(meta, geometry.label)
	return compute_grid(geometry.page, label)
