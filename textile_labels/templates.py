"""
Label templates and record building.
"""

# Standard Library
import dataclasses
import json
import re

# local repo modules
import textile_labels as tlab
import textile_labels.config


IMAGE_KEY = tlab.config.IMAGE_KEY
IMAGE_FIELD = tlab.config.IMAGE_FIELD
TITLE_KEY = tlab.config.TITLE_KEY
QUANTITY_KEY = tlab.config.QUANTITY_KEY
LABEL_WIDTH_KEY = tlab.config.LABEL_WIDTH_KEY
LABEL_HEIGHT_KEY = tlab.config.LABEL_HEIGHT_KEY
SHOW_BORDER_KEY = tlab.config.SHOW_BORDER_KEY
META_KEYS = tlab.config.META_KEYS

BARCODE_TYPE_NAMES = ("code128", "ean13", "qrcode", "datamatrix", "code39")
PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")


@dataclasses.dataclass(frozen=True)
class LabelTemplate:
	code: str
	name: str
	title: str
	barcode_type: str = "code128"
	fields: tuple[str, ...] = ()
	description: str = ""
	department_id: int | None = None


DEFAULT_TEMPLATES = {
	"YRN-DEPOT": LabelTemplate(
		code="YRN-DEPOT",
		name="Yarn Depot Label",
		title="YARN DEPOT LABEL",
		barcode_type="code128",
		fields=("yarnCode", "yarnType", "yarnCount", "color", "weight", "supplier", "arrivalDate", "lotNumber"),
		description="Standard label for the yarn depot",
		department_id=19,
	),
	"WVF-PROD": LabelTemplate(
		code="WVF-PROD",
		name="Woven Fabric Label",
		title="WOVEN FABRIC LABEL",
		barcode_type="code128",
		fields=("fabricCode", "fabricType", "width", "length", "machineId", "operatorId", "productionDate"),
		description="Standard fabric label for weaving",
		department_id=11,
	),
	"RQC-INSP": LabelTemplate(
		code="RQC-INSP",
		name="Raw Quality Control Label",
		title="RAW QUALITY CONTROL LABEL",
		barcode_type="code128",
		fields=("fabricCode", "fabricType", "rollNumber", "width", "length", "weight", "inspectorId", "status"),
		description="Standard label for raw quality control",
		department_id=13,
	),
	"PRD-CARD": LabelTemplate(
		code="PRD-CARD",
		name="Production Tracking Card",
		title="PRODUCTION TRACKING CARD",
		barcode_type="qrcode",
		fields=("orderNumber", "planNo", "fabricType", "orderQuantity", "unit", "startDate", "endDate", "currentStep", "priority"),
		description="Tracking card that travels with production",
		department_id=3,
	),
	"SMP-CARD": LabelTemplate(
		code="SMP-CARD",
		name="Sample Card Label",
		title="SAMPLE CARD LABEL",
		barcode_type="qrcode",
		fields=("sampleCode", "customerName", "fabricType", "color", "width", "createdBy", "status"),
		description="Standard label for sample cards",
		department_id=18,
	),
	"STK-DEPOT": LabelTemplate(
		code="STK-DEPOT",
		name="Fabric Depot Label",
		title="FABRIC DEPOT LABEL",
		barcode_type="code128",
		fields=("fabricCode", "fabricType", "rollNumber", "width", "length", "weight", "color", "quality", "location"),
		description="Standard label for the fabric depot",
		department_id=4,
	),
	"QCL-INSP": LabelTemplate(
		code="QCL-INSP",
		name="Quality Control Label",
		title="QUALITY CONTROL LABEL",
		barcode_type="code128",
		fields=("fabricCode", "fabricType", "rollNumber", "width", "length", "weight", "inspector", "quality", "defectPoints", "grade"),
		description="Standard label for quality control",
		department_id=5,
	),
}


#============================================
def list_templates() -> list[str]:
	"""
	Return the built-in template codes.
	"""
	return sorted(DEFAULT_TEMPLATES)


#============================================
def get_template(code: str) -> LabelTemplate:
	"""
	Look up a built-in template by code.

	Args:
		code: Template code, case-insensitive.

	Returns:
		LabelTemplate.

	Raises:
		KeyError: When the code is unknown.
	"""
	key = (code or "").strip().upper()
	template = DEFAULT_TEMPLATES.get(key)
	if template is None:
		available = ", ".join(list_templates())
		raise KeyError(f"Unknown template '{code}'. Available templates: {available}")
	return template


#============================================
def _decode(value, what: str):
	if isinstance(value, (str, bytes)):
		try:
			return json.loads(value)
		except json.JSONDecodeError as exc:
			raise ValueError(f"Invalid {what} JSON: {exc}") from exc
	return value


#============================================
def parse_template(
	descriptor,
	fields=None,
	*,
	code: str = "",
	name: str = "",
	description: str = "",
	department_id: int | None = None,
) -> LabelTemplate:
	"""
	Build a template from its stored form.

	The descriptor is a JSON object like {"title": ..., "barcodeType": ...}
	and fields a JSON list of field names. Either may be given as a string or
	as decoded data.

	Args:
		descriptor: Template descriptor.
		fields: Field names.
		code: Template code.
		name: Display name.
		description: Free text description.
		department_id: Owning department.

	Returns:
		LabelTemplate.

	Raises:
		ValueError: When the descriptor is malformed.
	"""
	data = _decode(descriptor, "template")
	if not isinstance(data, dict):
		raise ValueError("Template descriptor must be a JSON object")
	field_list = _decode(fields, "fields") if fields is not None else data.get("fields", [])
	if not isinstance(field_list, list) or not all(isinstance(item, str) for item in field_list):
		raise ValueError("Template fields must be a list of field names")

	barcode_type = str(data.get("barcodeType") or data.get("barcode_type") or "code128").lower()
	if barcode_type not in BARCODE_TYPE_NAMES:
		raise ValueError(
			f"Unknown barcode type '{barcode_type}'. Expected one of: {', '.join(BARCODE_TYPE_NAMES)}"
		)
	return LabelTemplate(
		code=code,
		name=name,
		title=str(data.get("title") or ""),
		barcode_type=barcode_type,
		fields=tuple(field_list),
		description=description,
		department_id=department_id,
	)


#============================================
def fill_placeholders(text: str, values: dict) -> str:
	"""
	Replace {{key}} placeholders with scalar record values.

	Unknown keys and non-scalar values leave the placeholder untouched.

	Args:
		text: Template text.
		values: Record values by key.

	Returns:
		Filled text.
	"""
	def replace(match: re.Match) -> str:
		key = match.group(1)
		value = values.get(key)
		if isinstance(value, bool):
			return "true" if value else "false"
		if isinstance(value, (str, int, float)):
			return str(value)
		return match.group(0)

	return PLACEHOLDER_PATTERN.sub(replace, text)


#============================================
def build_record(
	template: LabelTemplate,
	data: dict,
	*,
	title: str | None = None,
	quantity: int | None = None,
	barcode_value: str | None = None,
	barcode_url=None,
	show_border: bool = False,
	label_width: float | None = None,
	label_height: float | None = None,
) -> dict:
	"""
	Build an ordered label record from entity data and a template.

	Meta keys come first, then the barcode value, then the template's fields
	in template order. Fields missing from the data are skipped.

	Args:
		template: Label template.
		data: Entity values keyed by field name.
		title: Title for this record, used ahead of the template title.
		quantity: Number of labels to print.
		barcode_value: Content encoded by the barcode.
		barcode_url: Barcode image reference.
		show_border: Whether to outline each label.
		label_width: Label width override.
		label_height: Label height override.

	Returns:
		Record dict.
	"""
	record: dict = {}
	title = title or template.title
	if title:
		record[TITLE_KEY] = fill_placeholders(str(title), data)
	if quantity is not None:
		record[QUANTITY_KEY] = quantity
	if label_width is not None:
		record[LABEL_WIDTH_KEY] = label_width
	if label_height is not None:
		record[LABEL_HEIGHT_KEY] = label_height
	if show_border:
		record[SHOW_BORDER_KEY] = True
	if barcode_url is not None:
		record[IMAGE_KEY] = barcode_url
	if barcode_value:
		record[IMAGE_FIELD] = barcode_value
	for field_name in template.fields:
		# meta keys configure the layout and never come from entity data
		if field_name in META_KEYS:
			continue
		if field_name in data:
			record[field_name] = data[field_name]
	return record
