import base64
import io
import json
import pathlib

import PIL.Image
import pypdf
import pytest

import textile_labels.barcode
import textile_labels.config
import textile_labels.layout
import textile_labels.render


SheetGeometry = textile_labels.config.SheetGeometry
layout = textile_labels.layout
render = textile_labels.render


#============================================
def png_bytes() -> bytes:
	"""
	Build a tiny PNG image.
	"""
	image = PIL.Image.new("RGB", (8, 8), (0, 0, 0))
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return buffer.getvalue()


#============================================
def page_count(blob: bytes) -> int:
	return len(pypdf.PdfReader(io.BytesIO(blob)).pages)


#============================================
def test_rendered_page_count_matches_layout() -> None:
	"""
	One PDF page is written per layout page.
	"""
	geometry = SheetGeometry()
	record = {"title": "KALİTE KONTROL", "code": "QC-1", "inspector": "Ayşe", "quantity": 23}
	pages = layout.layout(None, record, geometry)
	blob = render.render_pdf_bytes(pages, geometry, draw_outlines=True)
	assert blob.startswith(b"%PDF")
	assert page_count(blob) == 3


#============================================
def test_page_size_in_points() -> None:
	geometry = SheetGeometry()
	pages = layout.layout(None, {"code": "A"}, geometry)
	reader = pypdf.PdfReader(io.BytesIO(render.render_pdf_bytes(pages, geometry)))
	box = reader.pages[0].mediabox
	assert float(box.width) == pytest.approx(595.28, abs=0.01)
	assert float(box.height) == pytest.approx(841.89, abs=0.01)


#============================================
def test_render_with_barcode_drawing() -> None:
	geometry = SheetGeometry()
	drawing = textile_labels.barcode.make_barcode_drawing("YRN-7-64645000-042", "code128")
	record = {"barcodeUrl": drawing, "barcode": "YRN-7-64645000-042", "quantity": 4, "showBorder": True}
	pages = layout.layout(None, record, geometry)
	assert page_count(render.render_pdf_bytes(pages, geometry)) == 1


#============================================
def test_render_with_data_uri_image() -> None:
	"""
	Base64 data URIs are decoded like the web client sends them.
	"""
	geometry = SheetGeometry()
	uri = "data:image/png;base64," + base64.b64encode(png_bytes()).decode("ascii")
	pages = layout.layout(None, {"barcodeUrl": uri, "code": "A", "quantity": 2}, geometry)
	assert page_count(render.render_pdf_bytes(pages, geometry)) == 1


#============================================
def test_render_to_path(tmp_path: pathlib.Path) -> None:
	geometry = SheetGeometry()
	image_path = tmp_path / "barcode.png"
	image_path.write_bytes(png_bytes())
	pages = layout.layout(None, {"barcodeUrl": str(image_path), "quantity": 11}, geometry)
	output_path = tmp_path / "labels.pdf"
	written = render.render_pages(pages, geometry, output_path)
	assert written == 2
	assert output_path.exists()
	assert page_count(output_path.read_bytes()) == 2


#============================================
def test_resolve_image_sources(tmp_path: pathlib.Path) -> None:
	"""
	Bytes, PIL images, paths and drawings are all accepted.
	"""
	data = png_bytes()
	path = tmp_path / "img.png"
	path.write_bytes(data)
	drawing = textile_labels.barcode.make_barcode_drawing("A-1", "qrcode")
	assert render.resolve_image(drawing) is drawing
	for source in (data, PIL.Image.open(io.BytesIO(data)), path, str(path)):
		reader = render.resolve_image(source)
		assert reader.getSize() == (8, 8)


#============================================
@pytest.mark.parametrize(
	"source",
	[
		12,
		"missing-file.png",
		"data:image/png,notbase64",
		"data:image/png;base64,@@@",
	],
)
def test_resolve_image_rejects_bad_sources(source) -> None:
	with pytest.raises(ValueError):
		render.resolve_image(source)


#============================================
def test_render_without_pages_raises() -> None:
	with pytest.raises(ValueError):
		render.render_pdf_bytes([], SheetGeometry())


#============================================
def test_normalize_text() -> None:
	"""
	Turkish letters fold to ASCII for the built-in fonts.
	"""
	assert render.normalize_text("İPLİK DEPO ETİKETİ") == "IPLIK DEPO ETIKETI"
	assert render.normalize_text("Kumaş ağırlığı 5×3") == "Kumas agirligi 5x3"
	assert render.normalize_text("") == ""


#============================================
def test_merge_pdfs(tmp_path: pathlib.Path) -> None:
	geometry = SheetGeometry()
	first = render.render_pdf_bytes(layout.layout(None, {"code": "A", "quantity": 15}, geometry), geometry)
	second = render.render_pdf_bytes(layout.layout(None, {"code": "B", "quantity": 1}, geometry), geometry)
	output_path = tmp_path / "merged.pdf"
	total = render.merge_pdfs([first, second], output_path)
	assert total == 3
	assert page_count(output_path.read_bytes()) == 3


#============================================
def test_write_manifest(tmp_path: pathlib.Path) -> None:
	"""
	The manifest records per-job and total counts.
	"""
	geometry = SheetGeometry()
	record = {"code": "A", "quantity": 23}
	pages = layout.layout(None, record, geometry)
	summary = layout.summarize(pages, layout.grid_for_record(record, geometry))
	manifest_path = tmp_path / "labels.json"
	render.write_manifest(manifest_path, [("A", summary)], geometry, tmp_path / "labels.pdf")
	data = json.loads(manifest_path.read_text(encoding="utf-8"))
	assert data["total_labels"] == 23
	assert data["total_pages"] == 3
	assert data["jobs"][0]["name"] == "A"
	assert data["jobs"][0]["last_page_labels"] == 3
	assert data["layout"]["label_width"] == 90.0
