import textile_labels.layout


layout = textile_labels.layout


#============================================
def fields_of(record: dict) -> list:
	return layout.record_fields(record)


#============================================
def test_primary_and_secondary_split_keeps_order() -> None:
	"""
	Identity fields go to the primary group, the rest to secondary.
	"""
	record = {
		"color": "ecru",
		"name": "Denim",
		"width": 150,
		"code": "DN-4",
		"type": "woven",
		"weight": 12.5,
	}
	groups = layout.classify_fields(fields_of(record))
	assert [field.key for field in groups.primary] == ["name", "code", "type"]
	assert [field.key for field in groups.secondary] == ["color", "width", "weight"]


#============================================
def test_meta_keys_are_never_classified() -> None:
	record = {
		"barcodeUrl": "img.png",
		"title": "T",
		"quantity": 3,
		"labelWidth": 90,
		"labelHeight": 50,
		"showBorder": True,
		"id": 9,
	}
	groups = layout.classify_fields(fields_of(record))
	assert [field.key for field in groups.primary] == ["id"]
	assert groups.secondary == ()


#============================================
def test_nested_and_none_values() -> None:
	"""
	Structured values never become text lines. None is only kept as a
	primary field.
	"""
	record = {
		"code": "C",
		"history": [1, 2],
		"dimensions": {"w": 1},
		"tags": ("a",),
		"name": None,
		"note": "ok",
		"supplier": None,
	}
	groups = layout.classify_fields(fields_of(record))
	assert [field.key for field in groups.primary] == ["code", "name"]
	assert [field.key for field in groups.secondary] == ["note"]


#============================================
def test_none_primary_value_is_printed_as_null() -> None:
	pages = layout.layout(None, {"id": None, "lot": None})
	instructions = pages[0].slots[0].instructions
	assert [(i.label, i.value) for i in instructions] == [("Id: ", "null")]


#============================================
def test_slot_instruction_positions() -> None:
	"""
	Check every instruction of a fully featured first slot.
	"""
	record = {
		"title": "FABRIC DEPOT LABEL",
		"barcodeUrl": "barcode.png",
		"showBorder": True,
		"barcode": "STK-1-00000001-000",
		"code": "C-1",
		"color": "red",
		"weight": 12,
	}
	pages = layout.layout(None, record)
	instructions = pages[0].slots[0].instructions
	assert instructions[0] == layout.BorderInstruction(10.0, 10.0, 90.0, 50.0)
	assert instructions[1] == layout.TextInstruction(15.0, 17.0, "FABRIC DEPOT LABEL", 12.0, True)
	assert instructions[2] == layout.ImageInstruction(55.0, 15.0, 40.0, 40.0, "barcode.png")
	assert instructions[3] == layout.FieldInstruction(15.0, 25.0, "Code: ", "C-1", 10.0, 35.0, "primary")
	assert instructions[4] == layout.FieldInstruction(15.0, 30.0, "Color: ", "red", 8.0, 35.0, "secondary")
	assert instructions[5] == layout.FieldInstruction(15.0, 34.0, "Weight: ", "12", 8.0, 35.0, "secondary")
	assert len(instructions) == 6


#============================================
def test_camel_case_meta_keys_configure_the_label() -> None:
	"""
	showBorder, barcodeUrl and labelWidth configure the slot and are never
	printed as fields.
	"""
	record = {
		"showBorder": True,
		"barcodeUrl": "b.png",
		"barcode": "B-1",
		"labelWidth": 60,
		"labelHeight": 45,
		"code": "C",
	}
	pages = layout.layout(None, record)
	slot = pages[0].slots[0]
	assert (slot.width, slot.height) == (60.0, 45.0)
	assert [i.kind for i in slot.instructions] == ["border", "image", "field"]
	assert slot.instructions[0] == layout.BorderInstruction(10.0, 10.0, 60.0, 45.0)
	assert slot.instructions[1] == layout.ImageInstruction(25.0, 15.0, 40.0, 40.0, "b.png")
	assert slot.instructions[2].label == "Code: "


#============================================
def test_text_starts_higher_without_title() -> None:
	pages = layout.layout(None, {"code": "C-1", "name": "Roll", "lot": "L7"})
	fields = [i for i in pages[0].slots[0].instructions if i.kind == "field"]
	assert [i.y for i in fields] == [17.0, 22.0, 27.0]
	assert [i.font_size for i in fields] == [10.0, 10.0, 8.0]


#============================================
def test_barcode_field_suppressed_only_with_image() -> None:
	"""
	The barcode value is not repeated as text when its image is drawn.
	"""
	record = {"barcodeUrl": "barcode.png", "barcode": "B-1", "id": 4, "name": "Roll"}
	pages = layout.layout(None, record)
	instructions = pages[0].slots[0].instructions
	images = [i for i in instructions if i.kind == "image"]
	labels = [i.label for i in instructions if i.kind == "field"]
	assert len(images) == 1
	assert labels == ["Id: ", "Name: "]


#============================================
def test_barcode_field_rendered_without_image() -> None:
	pages = layout.layout(None, {"barcode": "B-1", "id": 4})
	instructions = pages[0].slots[0].instructions
	assert [i.kind for i in instructions] == ["field", "field"]
	assert instructions[0].label == "Barcode: "
	assert instructions[0].value == "B-1"


#============================================
def test_empty_image_reference_is_ignored() -> None:
	pages = layout.layout(None, {"barcodeUrl": "  ", "barcode": "B-1"})
	kinds = [i.kind for i in pages[0].slots[0].instructions]
	assert kinds == ["field"]


#============================================
def test_value_formatting() -> None:
	pages = layout.layout(None, {"active": True, "ratio": 0.5, "count": 3})
	values = [i.value for i in pages[0].slots[0].instructions]
	assert values == ["true", "0.5", "3"]


#============================================
def test_field_label_capitalizes_first_letter_only() -> None:
	assert layout.field_label("rollNumber") == "RollNumber: "
	assert layout.field_label("") == ": "
