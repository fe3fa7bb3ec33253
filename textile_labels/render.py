"""
Rendering of layout pages to PDF.
"""

# Standard Library
import base64
import binascii
import io
import json
import pathlib
import unicodedata

# PIP3 modules
import PIL.Image
import pypdf
import reportlab.graphics.renderPDF
import reportlab.graphics.shapes
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import textile_labels as tlab
import textile_labels.config
import textile_labels.layout


SheetGeometry = tlab.config.SheetGeometry
LabelGeometry = tlab.config.LabelGeometry
LayoutSummary = tlab.config.LayoutSummary
Page = tlab.layout.Page
BorderInstruction = tlab.layout.BorderInstruction
TextInstruction = tlab.layout.TextInstruction
ImageInstruction = tlab.layout.ImageInstruction
FieldInstruction = tlab.layout.FieldInstruction
mm_to_points = tlab.config.mm_to_points

DEFAULT_FONT_REGULAR = tlab.config.DEFAULT_FONT_REGULAR
DEFAULT_FONT_BOLD = tlab.config.DEFAULT_FONT_BOLD
OUTLINE_LINE_WIDTH = tlab.config.OUTLINE_LINE_WIDTH
BORDER_LINE_WIDTH = tlab.config.BORDER_LINE_WIDTH


#============================================
def normalize_text(value: str) -> str:
	"""
	Normalize label text to ASCII for the built-in PDF fonts.

	Args:
		value: Input text.

	Returns:
		Normalized text.
	"""
	if not value:
		return value
	replacements = {
		"\u0131": "i",
		"\u0130": "I",
		"\u00d7": "x",
		"\u00d8": "O",
		"\u00f8": "o",
		"\u00bd": "1/2",
		"\u00b0": "deg",
		"\u00a0": " ",
	}
	for old, new in replacements.items():
		value = value.replace(old, new)
	value = unicodedata.normalize("NFKD", value)
	value = value.encode("ascii", "ignore").decode("ascii")
	return value


#============================================
def _open_image(data: bytes) -> reportlab.lib.utils.ImageReader:
	image = PIL.Image.open(io.BytesIO(data))
	image.load()
	return reportlab.lib.utils.ImageReader(image)


#============================================
def resolve_image(source):
	"""
	Turn an image reference into something the canvas can draw.

	Args:
		source: Drawing, PIL image, bytes, data URI or file path.

	Returns:
		Drawing or ImageReader.

	Raises:
		ValueError: When the reference is not supported.
	"""
	if isinstance(source, reportlab.graphics.shapes.Drawing):
		return source
	if isinstance(source, PIL.Image.Image):
		return reportlab.lib.utils.ImageReader(source)
	if isinstance(source, (bytes, bytearray)):
		return _open_image(bytes(source))
	if isinstance(source, str) and source.startswith("data:"):
		header, _, payload = source.partition(",")
		if ";base64" not in header:
			raise ValueError("Only base64 data URIs are supported for label images")
		try:
			data = base64.b64decode(payload, validate=True)
		except binascii.Error as exc:
			raise ValueError(f"Invalid base64 image data: {exc}") from exc
		return _open_image(data)
	if isinstance(source, (str, pathlib.Path)):
		path = pathlib.Path(source)
		if not path.is_file():
			raise ValueError(f"Label image not found: {path}")
		return _open_image(path.read_bytes())
	raise ValueError(f"Unsupported label image reference: {type(source).__name__}")


#============================================
def draw_border(
	pdf: reportlab.pdfgen.canvas.Canvas,
	instruction: BorderInstruction,
	page_height: float,
) -> None:
	pdf.setLineWidth(BORDER_LINE_WIDTH)
	pdf.setStrokeColorRGB(0.0, 0.0, 0.0)
	pdf.rect(
		mm_to_points(instruction.x),
		mm_to_points(page_height - instruction.y - instruction.height),
		mm_to_points(instruction.width),
		mm_to_points(instruction.height),
		stroke=1,
		fill=0,
	)


#============================================
def draw_text(
	pdf: reportlab.pdfgen.canvas.Canvas,
	instruction: TextInstruction,
	page_height: float,
	normalize: bool,
) -> None:
	text = normalize_text(instruction.text) if normalize else instruction.text
	font_name = DEFAULT_FONT_BOLD if instruction.bold else DEFAULT_FONT_REGULAR
	pdf.setFont(font_name, instruction.font_size)
	pdf.drawString(
		mm_to_points(instruction.x),
		mm_to_points(page_height - instruction.y),
		text,
	)


#============================================
def draw_field(
	pdf: reportlab.pdfgen.canvas.Canvas,
	instruction: FieldInstruction,
	page_height: float,
	normalize: bool,
) -> None:
	"""
	Draw a bold field label followed by its regular weight value.

	Args:
		pdf: ReportLab canvas.
		instruction: Field instruction.
		page_height: Page height in millimetres.
		normalize: Whether to fold text to ASCII.
	"""
	label = instruction.label
	value = instruction.value
	if normalize:
		label = normalize_text(label)
		value = normalize_text(value)
	baseline = mm_to_points(page_height - instruction.y)
	pdf.setFont(DEFAULT_FONT_BOLD, instruction.font_size)
	pdf.drawString(mm_to_points(instruction.x), baseline, label)
	pdf.setFont(DEFAULT_FONT_REGULAR, instruction.font_size)
	pdf.drawString(mm_to_points(instruction.value_x), baseline, value)


#============================================
def draw_image(
	pdf: reportlab.pdfgen.canvas.Canvas,
	instruction: ImageInstruction,
	page_height: float,
	image_cache: dict[int, object],
) -> None:
	"""
	Draw an image reference into its box, keeping the aspect ratio.

	Args:
		pdf: ReportLab canvas.
		instruction: Image instruction.
		page_height: Page height in millimetres.
		image_cache: Resolved images keyed by id() of the source.
	"""
	key = id(instruction.source)
	image = image_cache.get(key)
	if image is None:
		image = resolve_image(instruction.source)
		image_cache[key] = image

	box_x = mm_to_points(instruction.x)
	box_y = mm_to_points(page_height - instruction.y - instruction.height)
	box_width = mm_to_points(instruction.width)
	box_height = mm_to_points(instruction.height)

	if isinstance(image, reportlab.graphics.shapes.Drawing):
		if image.width <= 0 or image.height <= 0:
			return
		scale = min(box_width / image.width, box_height / image.height)
		offset_x = (box_width - image.width * scale) / 2.0
		offset_y = (box_height - image.height * scale) / 2.0
		pdf.saveState()
		pdf.translate(box_x + offset_x, box_y + offset_y)
		pdf.scale(scale, scale)
		reportlab.graphics.renderPDF.draw(image, pdf, 0, 0)
		pdf.restoreState()
		return

	pdf.drawImage(
		image,
		box_x,
		box_y,
		width=box_width,
		height=box_height,
		mask="auto",
		preserveAspectRatio=True,
		anchor="c",
	)


#============================================
def draw_grid_outlines(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: SheetGeometry,
	label: LabelGeometry,
) -> None:
	"""
	Draw light outlines for every slot of the grid on the current page.

	Args:
		pdf: ReportLab canvas.
		geometry: Sheet geometry.
		label: Label geometry used by the job.
	"""
	page = geometry.page
	grid = tlab.layout.compute_grid(page, label)
	pdf.saveState()
	pdf.setLineWidth(OUTLINE_LINE_WIDTH)
	pdf.setStrokeColorRGB(0.7, 0.7, 0.7)
	for row in range(grid.rows):
		for column in range(grid.columns):
			x = page.margin + column * label.width
			y = page.margin + row * label.height
			pdf.rect(
				mm_to_points(x),
				mm_to_points(page.height - y - label.height),
				mm_to_points(label.width),
				mm_to_points(label.height),
				stroke=1,
				fill=0,
			)
	pdf.restoreState()


#============================================
def render_pages(
	pages: list[Page],
	geometry: SheetGeometry,
	output,
	draw_outlines: bool = False,
	normalize: bool = True,
) -> int:
	"""
	Render layout pages to a PDF.

	Args:
		pages: Pages produced by layout().
		geometry: Sheet geometry the pages were laid out on.
		output: Output path or binary file object.
		draw_outlines: Draw outlines of every grid slot.
		normalize: Fold text to ASCII for the built-in fonts.

	Returns:
		Number of PDF pages written.
	"""
	if not pages:
		raise ValueError("No pages to render")
	page_height = geometry.page.height
	page_size = (mm_to_points(geometry.page.width), mm_to_points(page_height))
	if isinstance(output, pathlib.Path):
		output = str(output)
	pdf = reportlab.pdfgen.canvas.Canvas(output, pagesize=page_size)

	image_cache: dict[int, object] = {}
	for page in pages:
		if draw_outlines and page.slots:
			first = page.slots[0]
			draw_grid_outlines(pdf, geometry, LabelGeometry(first.width, first.height))
		for slot in page.slots:
			for instruction in slot.instructions:
				if instruction.kind == "border":
					draw_border(pdf, instruction, page_height)
				elif instruction.kind == "text":
					draw_text(pdf, instruction, page_height, normalize)
				elif instruction.kind == "image":
					draw_image(pdf, instruction, page_height, image_cache)
				elif instruction.kind == "field":
					draw_field(pdf, instruction, page_height, normalize)
				else:
					raise ValueError(f"Unknown draw instruction: {instruction.kind}")
		pdf.showPage()
	pdf.save()
	return len(pages)


#============================================
def render_pdf_bytes(
	pages: list[Page],
	geometry: SheetGeometry,
	draw_outlines: bool = False,
	normalize: bool = True,
) -> bytes:
	"""
	Render layout pages and return the PDF bytes.
	"""
	buffer = io.BytesIO()
	render_pages(pages, geometry, buffer, draw_outlines=draw_outlines, normalize=normalize)
	return buffer.getvalue()


#============================================
def merge_pdfs(blobs: list[bytes], output_path: pathlib.Path) -> int:
	"""
	Concatenate rendered PDF jobs into one file.

	Args:
		blobs: PDF documents as bytes.
		output_path: Output PDF path.

	Returns:
		Total number of pages written.
	"""
	writer = pypdf.PdfWriter()
	for blob in blobs:
		reader = pypdf.PdfReader(io.BytesIO(blob))
		for page in reader.pages:
			writer.add_page(page)
	with pathlib.Path(output_path).open("wb") as handle:
		writer.write(handle)
	return len(writer.pages)


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	jobs: list[tuple[str, LayoutSummary]],
	geometry: SheetGeometry,
	output_path: pathlib.Path,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		jobs: (name, summary) for every rendered job.
		geometry: Sheet geometry.
		output_path: PDF the jobs were written to.
	"""
	data = {
		"output": str(output_path),
		"jobs": [
			{
				"name": name,
				"labels": summary.quantity,
				"pages": summary.pages,
				"labels_per_page": summary.labels_per_page,
				"columns": summary.columns,
				"rows": summary.rows,
				"last_page_labels": summary.last_page_labels,
			}
			for name, summary in jobs
		],
		"total_labels": sum(summary.quantity for _name, summary in jobs),
		"total_pages": sum(summary.pages for _name, summary in jobs),
		"layout": {
			"page_width": geometry.page.width,
			"page_height": geometry.page.height,
			"margin": geometry.page.margin,
			"label_width": geometry.label.width,
			"label_height": geometry.label.height,
		},
		"fonts": {
			"regular": DEFAULT_FONT_REGULAR,
			"bold": DEFAULT_FONT_BOLD,
		},
	}
	with pathlib.Path(manifest_path).open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
