"""
Barcode values and barcode drawings used as label image references.
"""

# Standard Library
import datetime

# PIP3 modules
import reportlab.graphics.barcode
import reportlab.graphics.shapes


BARCODE_TYPES = {
	"code128": "Code128",
	"ean13": "EAN13",
	"qrcode": "QR",
	"datamatrix": "ECC200DataMatrix",
	"code39": "Standard39",
}


#============================================
def generate_barcode_value(
	prefix: str,
	entity_id: int,
	when: datetime.datetime,
	nonce: int = 0,
) -> str:
	"""
	Build a barcode value like PREFIX-ID-TIMESTAMP-NONCE.

	Args:
		prefix: Department prefix such as "YRN".
		entity_id: Entity identifier.
		when: Time the value is issued.
		nonce: Disambiguator for values issued in the same millisecond.

	Returns:
		Barcode value string.
	"""
	epoch_ms = int(when.timestamp() * 1000)
	timestamp = str(epoch_ms)[-8:]
	return f"{prefix}-{entity_id}-{timestamp}-{nonce % 1000:03d}"


#============================================
def make_barcode_drawing(value: str, barcode_type: str = "code128") -> reportlab.graphics.shapes.Drawing:
	"""
	Create a vector barcode drawing for a label.

	Args:
		value: Content to encode.
		barcode_type: One of BARCODE_TYPES.

	Returns:
		ReportLab Drawing.

	Raises:
		ValueError: When the barcode type is unknown or the value is empty.
	"""
	key = (barcode_type or "").strip().lower()
	widget_name = BARCODE_TYPES.get(key)
	if widget_name is None:
		raise ValueError(
			f"Unknown barcode type '{barcode_type}'. Expected one of: {', '.join(sorted(BARCODE_TYPES))}"
		)
	if not value:
		raise ValueError("Barcode value must not be empty")
	return reportlab.graphics.barcode.createBarcodeDrawing(widget_name, value=value)
