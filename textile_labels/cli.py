"""
CLI entry points for printing label sheets from JSON records.
"""

# Standard Library
import argparse
import json
import pathlib
import time

# local repo modules
import textile_labels as tlab
import textile_labels.barcode
import textile_labels.config
import textile_labels.layout
import textile_labels.render
import textile_labels.templates


PageGeometry = tlab.config.PageGeometry
LabelGeometry = tlab.config.LabelGeometry
SheetGeometry = tlab.config.SheetGeometry
LayoutError = tlab.layout.LayoutError

PAGE_SIZES = tlab.config.PAGE_SIZES
DEFAULT_MARGIN = tlab.config.DEFAULT_MARGIN
DEFAULT_LABEL_WIDTH = tlab.config.DEFAULT_LABEL_WIDTH
DEFAULT_LABEL_HEIGHT = tlab.config.DEFAULT_LABEL_HEIGHT
PROGRESS_BAR_WIDTH = tlab.config.PROGRESS_BAR_WIDTH
IMAGE_KEY = tlab.config.IMAGE_KEY
IMAGE_FIELD = tlab.config.IMAGE_FIELD
QUANTITY_KEY = tlab.config.QUANTITY_KEY
SHOW_BORDER_KEY = tlab.config.SHOW_BORDER_KEY
TITLE_KEY = tlab.config.TITLE_KEY
LABEL_WIDTH_KEY = tlab.config.LABEL_WIDTH_KEY
LABEL_HEIGHT_KEY = tlab.config.LABEL_HEIGHT_KEY
TEMPLATE_KEY = "template"


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def build_geometry(args: argparse.Namespace) -> SheetGeometry:
	"""
	Build sheet geometry from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		SheetGeometry.
	"""
	base_page = PAGE_SIZES[args.page_size]
	page = PageGeometry(width=base_page.width, height=base_page.height, margin=args.margin)
	label = LabelGeometry(width=args.label_width, height=args.label_height)
	return SheetGeometry(page=page, label=label)


#============================================
def load_records(path: pathlib.Path) -> list[dict]:
	"""
	Load label records from a JSON file.

	Args:
		path: JSON file holding one record object or a list of them.

	Returns:
		List of record dicts, key order preserved.
	"""
	try:
		text = path.read_text(encoding="utf-8")
	except OSError as exc:
		raise SystemExit(f"Cannot read {path}: {exc}") from exc
	try:
		payload = json.loads(text)
	except json.JSONDecodeError as exc:
		raise SystemExit(f"Invalid JSON in {path}: {exc}") from exc
	if isinstance(payload, dict):
		payload = [payload]
	if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
		raise SystemExit(f"{path} must hold a record object or a list of record objects")
	return payload


#============================================
def prepare_record(
	raw: dict,
	args: argparse.Namespace,
) -> tuple[dict, tlab.templates.LabelTemplate | None]:
	"""
	Turn a raw input record into a layout record.

	Args:
		raw: Record as read from the input file.
		args: Parsed argparse namespace.

	Returns:
		Tuple of (record, template or None).
	"""
	data = dict(raw)
	template_code = data.pop(TEMPLATE_KEY, None) or args.template
	template = None
	if template_code:
		try:
			template = tlab.templates.get_template(str(template_code))
		except KeyError as exc:
			raise SystemExit(exc.args[0]) from exc

	quantity = data.get(QUANTITY_KEY, args.quantity)
	if args.max_labels is not None:
		quantity = min(tlab.layout.normalize_quantity(quantity), args.max_labels)
	show_border = bool(data.get(SHOW_BORDER_KEY, args.show_border))

	barcode_url = data.get(IMAGE_KEY)
	barcode_value = data.get(IMAGE_FIELD)
	if barcode_url is None and barcode_value:
		barcode_type = template.barcode_type if template is not None else args.barcode_type
		try:
			barcode_url = tlab.barcode.make_barcode_drawing(str(barcode_value), barcode_type)
		except ValueError as exc:
			raise SystemExit(f"Cannot build barcode for '{barcode_value}': {exc}") from exc

	if template is not None:
		record = tlab.templates.build_record(
			template,
			data,
			title=data.get(TITLE_KEY),
			quantity=quantity,
			barcode_value=barcode_value,
			barcode_url=barcode_url,
			show_border=show_border,
			label_width=data.get(LABEL_WIDTH_KEY),
			label_height=data.get(LABEL_HEIGHT_KEY),
		)
		return record, template

	record = data
	record[QUANTITY_KEY] = quantity
	record[SHOW_BORDER_KEY] = show_border
	if barcode_url is not None:
		record[IMAGE_KEY] = barcode_url
	return record, None


#============================================
def job_name(raw: dict, index: int) -> str:
	for key in ("name", "code", "id", TEMPLATE_KEY):
		value = raw.get(key)
		if isinstance(value, (str, int)) and not isinstance(value, bool) and str(value):
			return str(value)
	return f"record_{index + 1}"


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Optional argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Print textile label records onto PDF label sheets.")
	parser.add_argument("input", help="JSON file with one record or a list of records.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")

	label_group = parser.add_argument_group("Labels")
	label_group.add_argument(
		"-t", "--template",
		dest="template",
		default=None,
		help="Built-in template code ({}).".format(", ".join(tlab.templates.list_templates())),
	)
	label_group.add_argument("-q", "--quantity", dest="quantity", type=int, default=1, help="Copies per record when the record has no quantity.")
	label_group.add_argument("-W", "--label-width", dest="label_width", type=float, default=DEFAULT_LABEL_WIDTH, help="Label width in mm.")
	label_group.add_argument("-H", "--label-height", dest="label_height", type=float, default=DEFAULT_LABEL_HEIGHT, help="Label height in mm.")
	label_group.add_argument("--barcode-type", dest="barcode_type", default="code128", choices=sorted(tlab.barcode.BARCODE_TYPES), help="Barcode type when no template is used.")

	page_group = parser.add_argument_group("Page")
	page_group.add_argument("--page-size", dest="page_size", default="a4", choices=sorted(PAGE_SIZES), help="Page size.")
	page_group.add_argument("--margin", dest="margin", type=float, default=DEFAULT_MARGIN, help="Page margin in mm.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument("-b", "--show-border", dest="show_border", action="store_true", help="Draw a border around every label.")
	behavior_group.add_argument("-d", "--draw-outlines", dest="draw_outlines", action="store_true", help="Draw outlines of every sheet slot.")
	behavior_group.add_argument("-n", "--normalize-text", dest="normalize_text", action="store_true", help="Normalize text to ASCII.")
	behavior_group.add_argument("-N", "--no-normalize-text", dest="normalize_text", action="store_false", help="Preserve original text.")

	limit_group = parser.add_argument_group("Limits")
	limit_group.add_argument("-l", "--max-labels", dest="max_labels", type=int, default=None, help="Cap the quantity of every record.")

	parser.set_defaults(
		show_border=False,
		draw_outlines=False,
		normalize_text=True,
	)

	args = parser.parse_args(argv)
	if args.max_labels is not None and args.max_labels < 1:
		parser.error("--max-labels must be at least 1")
	return args


#============================================
def run_pipeline(args: argparse.Namespace) -> None:
	"""
	Lay out, render and merge every record of the input file.

	Args:
		args: Parsed argparse namespace.
	"""
	print("Textile label sheets")
	print(f"Output PDF: {args.output_path}")
	if args.manifest_path:
		print(f"Manifest: {args.manifest_path}")
	print(f"Page: {args.page_size} margin={args.margin:g}mm")
	print(f"Default label: {args.label_width:g}x{args.label_height:g}mm")
	if args.max_labels is not None:
		print(f"Max labels: {args.max_labels}")

	start_time = time.perf_counter()
	records = load_records(pathlib.Path(args.input))
	print(f"Records found: {len(records)}")

	geometry = build_geometry(args)
	blobs: list[bytes] = []
	jobs: list[tuple[str, tlab.config.LayoutSummary]] = []
	total = len(records)
	print_progress("Jobs", 0, total)
	for index, raw in enumerate(records):
		record, template = prepare_record(raw, args)
		try:
			grid = tlab.layout.grid_for_record(record, geometry)
			pages = tlab.layout.layout(template, record, geometry)
		except LayoutError as exc:
			print()
			raise SystemExit(f"Record {index + 1}: {exc}") from exc
		blobs.append(
			tlab.render.render_pdf_bytes(
				pages,
				geometry,
				draw_outlines=args.draw_outlines,
				normalize=args.normalize_text,
			)
		)
		jobs.append((job_name(raw, index), tlab.layout.summarize(pages, grid)))
		print_progress("Jobs", index + 1, total)
	print()

	output_path = pathlib.Path(args.output_path)
	page_count = tlab.render.merge_pdfs(blobs, output_path)
	print(f"Labels printed: {sum(summary.quantity for _name, summary in jobs)}")
	print(f"Pages written: {page_count}")

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = f"{output_path}.json"
	tlab.render.write_manifest(pathlib.Path(manifest_path), jobs, geometry, output_path)

	total_time = time.perf_counter() - start_time
	print(f"Timing: total={total_time:.2f}s")
	print(f"Manifest written: {manifest_path}")


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	run_pipeline(args)
