import pytest

import wkb_builder as wb
from wkb_parser import (
    ChildTypeMismatchError,
    DecodeResult,
    InvalidArgumentError,
    Parser,
    TaggedGeometry,
    UnexpectedValueError,
    decode,
)

NDR_POINT = "01010000003D0AD7A3701D41400000000000C055C0"
XDR_POINT = "000000000140411D70A3D70A3DC055C00000000000"

NDR_GEOMETRYCOLLECTION = (
    "01070000000300000001010000000000000000002440000000000000244001010000000000000000003E4000000"
    "00000003E400102000000020000000000000000002E400000000000002E4000000000000034400000000000003440"
)

NDR_COMPOUNDCURVE = (
    "01090000000200000001080000000300000000000000000000000000000000000000000000000000f03f0000000"
    "00000f03f000000000000004000000000000000000102000000020000000000000000000040000000000000000000000"
    "00000001040000000000000f03f"
)


# ------------------------- scenarios ------------------------- #

def test_point_2d():
    result = decode(wb.point(1, [1.0, 2.0]))
    assert result == DecodeResult(kind="POINT", srid=None, value=[1.0, 2.0], dimension="")


def test_point_z_flag():
    result = decode(wb.point(0x80000001, [1.0, 2.0, 3.0]))
    assert result.kind == "POINT"
    assert result.value == [1.0, 2.0, 3.0]
    assert result.dimension == "Z"


def test_point_z_legacy_matches_flag():
    legacy = decode(wb.point(1001, [1.0, 2.0, 3.0]))
    flag = decode(wb.point(0x80000001, [1.0, 2.0, 3.0]))
    assert legacy == flag


def test_geometry_collection_of_point_and_linestring():
    data = wb.collection(7, [
        wb.point(1, [1.0, 2.0]),
        wb.line(2, [[0.0, 0.0], [1.0, 1.0]]),
    ])
    result = decode(data)
    assert result.kind == "GEOMETRYCOLLECTION"
    assert result.value == [
        TaggedGeometry("POINT", [1.0, 2.0]),
        TaggedGeometry("LINESTRING", [[0.0, 0.0], [1.0, 1.0]]),
    ]


def test_linestring_in_multipoint_is_rejected():
    data = wb.collection(4, [wb.line(2, [[0.0, 0.0], [1.0, 1.0]])])
    with pytest.raises(UnexpectedValueError) as excinfo:
        decode(data)
    message = str(excinfo.value)
    assert "LINESTRING" in message
    assert "MULTIPOINT" in message
    assert "expected POINT" in message


def test_srid():
    data = wb.point(wb.type_word(wb.POINT, srid=True), [1.0, 2.0], srid=4326)
    result = decode(data)
    assert result.srid == 4326
    assert result.value == [1.0, 2.0]
    assert result.dimension == ""


# ------------------------- reference vectors ------------------------- #

@pytest.mark.parametrize("value", [
    NDR_POINT,
    XDR_POINT,
    "0x" + NDR_POINT,
    "X" + XDR_POINT,
    NDR_POINT.lower(),
    bytes.fromhex(NDR_POINT),
])
def test_point_vectors(value):
    result = decode(value)
    assert result.kind == "POINT"
    assert result.value == [pytest.approx(34.23), -87.0]
    assert result.srid is None


def test_xdr_point_with_srid():
    result = decode("0020000001000010E640411D70A3D70A3DC055C00000000000")
    assert result.srid == 4326
    assert result.value == [pytest.approx(34.23), -87.0]


def test_ogc_z_point():
    result = decode("00000003E94117C89F84189375411014361BA5E3540000000000000000")
    assert result.dimension == "Z"
    assert result.value == [pytest.approx(389671.879), pytest.approx(263437.527), 0.0]


@pytest.mark.parametrize("value, dimension", [
    ("0101000000000000000000F87F000000000000F87F", ""),
    ("01010000C0000000000000F87F000000000000F87F000000000000F87F000000000000F87F", "ZM"),
])
def test_empty_point(value, dimension):
    result = decode(value)
    assert result.value == []
    assert result.dimension == dimension


def test_nan_ordinates_are_dropped():
    assert decode("0101000000000000000000F03F000000000000F87F").value == [1.0]

    data = wb.line(1002, [[0.0, 1.0, float("nan")], [2.0, 3.0, 4.0]])
    assert decode(data).value == [[0.0, 1.0], [2.0, 3.0, 4.0]]


def test_geometry_collection_vector():
    result = decode(NDR_GEOMETRYCOLLECTION)
    assert result.to_dict() == {
        "type": "GEOMETRYCOLLECTION",
        "srid": None,
        "value": [
            {"type": "POINT", "value": [10.0, 10.0]},
            {"type": "POINT", "value": [30.0, 30.0]},
            {"type": "LINESTRING", "value": [[15.0, 15.0], [20.0, 20.0]]},
        ],
        "dimension": "",
    }


def test_empty_geometry_collection():
    result = decode("010700000000000000")
    assert result.kind == "GEOMETRYCOLLECTION"
    assert result.value == []


def test_compound_curve_vector():
    result = decode(NDR_COMPOUNDCURVE)
    assert result.kind == "COMPOUNDCURVE"
    assert result.value == [
        TaggedGeometry("CIRCULARSTRING", [[0.0, 0.0], [1.0, 1.0], [2.0, 0.0]]),
        TaggedGeometry("LINESTRING", [[2.0, 0.0], [4.0, 1.0]]),
    ]


# ------------------------- per kind ------------------------- #

def test_polygon_rings():
    outer = [[0.0, 0.0], [4.0, 0.0], [4.0, 4.0], [0.0, 0.0]]
    inner = [[1.0, 1.0], [2.0, 1.0], [2.0, 2.0], [1.0, 1.0]]
    result = decode(wb.polygon(3, [outer, inner]))
    assert result.value == [outer, inner]


def test_multi_polygon_zm_legacy():
    ring = [[0.0, 0.0, 1.0, 9.0], [1.0, 0.0, 1.0, 9.0], [1.0, 1.0, 1.0, 9.0], [0.0, 0.0, 1.0, 9.0]]
    data = wb.collection(3006, [wb.polygon(3003, [ring]), wb.polygon(3003, [ring])])
    result = decode(data)
    assert result.dimension == "ZM"
    assert result.value == [[ring], [ring]]


def test_multi_line_string_m():
    data = wb.collection(0x40000005, [wb.line(0x40000002, [[0.0, 0.0, 5.0], [1.0, 1.0, 6.0]])])
    result = decode(data)
    assert result.dimension == "M"
    assert result.value == [[[0.0, 0.0, 5.0], [1.0, 1.0, 6.0]]]


def test_curve_polygon_with_compound_curve_ring():
    arc = wb.line(8, [[0.0, 0.0], [1.0, 1.0], [2.0, 0.0]])
    chord = wb.line(2, [[2.0, 0.0], [0.0, 0.0]])
    data = wb.collection(10, [wb.collection(9, [arc, chord]), wb.line(2, [[0.5, 0.1], [0.6, 0.2]])])
    result = decode(data)
    assert result.kind == "CURVEPOLYGON"
    assert result.value == [
        TaggedGeometry("COMPOUNDCURVE", [
            TaggedGeometry("CIRCULARSTRING", [[0.0, 0.0], [1.0, 1.0], [2.0, 0.0]]),
            TaggedGeometry("LINESTRING", [[2.0, 0.0], [0.0, 0.0]]),
        ]),
        TaggedGeometry("LINESTRING", [[0.5, 0.1], [0.6, 0.2]]),
    ]


def test_multi_curve_is_flat_tagged_list():
    data = wb.collection(11, [
        wb.line(8, [[0.0, 0.0], [1.0, 1.0], [2.0, 0.0]]),
        wb.line(2, [[3.0, 3.0], [4.0, 4.0]]),
    ])
    result = decode(data)
    assert [item.kind for item in result.value] == ["CIRCULARSTRING", "LINESTRING"]


def test_multi_surface_mixes_polygon_and_curve_polygon():
    ring = [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 0.0]]
    data = wb.collection(12, [
        wb.polygon(3, [ring]),
        wb.collection(10, [wb.line(8, ring)]),
    ])
    result = decode(data)
    assert result.value == [
        TaggedGeometry("POLYGON", [ring]),
        TaggedGeometry("CURVEPOLYGON", [TaggedGeometry("CIRCULARSTRING", ring)]),
    ]


def test_polyhedral_surface_z():
    face = [[0.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.0], [0.0, 0.0, 0.0]]
    data = wb.collection(0x8000000F, [wb.polygon(0x80000003, [face])] * 2)
    result = decode(data)
    assert result.kind == "POLYHEDRALSURFACE"
    assert result.dimension == "Z"
    assert result.value == [TaggedGeometry("POLYGON", [face])] * 2


def test_child_byte_order_may_differ():
    data = wb.collection(4, [wb.point(1, [1.0, 2.0], byte_order=0), wb.point(1, [3.0, 4.0])])
    assert decode(data).value == [[1.0, 2.0], [3.0, 4.0]]


# ------------------------- properties ------------------------- #

@pytest.mark.parametrize("kind", wb.SUPPORTED_KINDS)
@pytest.mark.parametrize("dim", ["Z", "M", "ZM"])
def test_dimension_schemes_are_equivalent(kind, dim):
    legacy = decode(wb.minimal_stream(kind, dim, "legacy"))
    flag = decode(wb.minimal_stream(kind, dim, "flag"))
    assert legacy == flag
    assert flag.dimension == dim


@pytest.mark.parametrize("kind", wb.SUPPORTED_KINDS)
def test_decode_is_deterministic(kind):
    data = wb.minimal_stream(kind, "ZM")
    assert decode(data) == decode(data)
    assert decode(data).to_dict() == decode(data.hex()).to_dict()


def test_nested_collections():
    depth = 40
    data = wb.point(1, [1.0, 2.0])
    for _ in range(depth):
        data = wb.collection(7, [data])

    result = decode(data)
    node = result
    for _ in range(depth):
        assert node.kind == "GEOMETRYCOLLECTION"
        assert len(node.value) == 1
        node = node.value[0]
    assert node == TaggedGeometry("POINT", [1.0, 2.0])


def test_collection_children_inherit_dimension():
    # the child's word claims 2D but the stream is Z: three ordinates are read
    data = wb.collection(0x80000007, [wb.point(1, [1.0, 2.0, 3.0]), wb.point(1001, [4.0, 5.0, 6.0])])
    result = decode(data)
    assert result.value == [
        TaggedGeometry("POINT", [1.0, 2.0, 3.0]),
        TaggedGeometry("POINT", [4.0, 5.0, 6.0]),
    ]


@pytest.mark.parametrize("kind", [wb.TIN, wb.TRIANGLE])
@pytest.mark.parametrize("dim, scheme", [("", "flag"), ("Z", "flag"), ("Z", "legacy")])
def test_tin_and_triangle_are_unsupported(kind, dim, scheme):
    ring = [[0.0] * (2 + len(dim))] * 4
    data = wb.polygon(wb.type_word(kind, dim, scheme), [ring])
    with pytest.raises(UnexpectedValueError, match="Unsupported WKB type .* at byte 1$"):
        decode(data)


def test_triangle_inside_polyhedral_surface():
    ring = [[0.0, 0.0]] * 4
    data = wb.collection(15, [wb.polygon(17, [ring])])
    with pytest.raises(UnexpectedValueError, match="Unsupported WKB type"):
        decode(data)


def test_parser_reuse():
    parser = Parser()
    first = parser.parse(NDR_POINT)
    second = parser.parse(wb.minimal_stream(wb.MULTICURVE, "Z"))
    third = parser.parse("x" + NDR_POINT)
    assert first == third
    assert second.kind == "MULTICURVE"
    assert second.dimension == "Z"


# ------------------------- errors ------------------------- #

@pytest.mark.parametrize("value, message", [
    ("03010000003D0AD7A3701D41400000000000C055C0",
     'Invalid byte order "3" at byte 0'),
    ("01150000003D0AD7A3701D41400000000000C055C0",
     'Unsupported WKB type "21" (0x15) at byte 1'),
    ("0000000FA1",
     "POINT with unsupported dimensions 0xFA0 (4000) at byte 1"),
    ("0080000004000000020000000001",
     "Bad POINT with dimensions 0x0 (0) in MULTIPOINT, expected dimensions 0x80000000 (2147483648) at byte 10"),
    ("0080000004000000020000000002",
     "Unexpected LINESTRING with dimensions 0x0 (0) in MULTIPOINT, expected POINT with dimensions "
     "0x80000000 (2147483648) at byte 10"),
    ("0000000005000000020080000002",
     "Bad LINESTRING with dimensions 0x80000000 (2147483648) in MULTILINESTRING, expected dimensions "
     "0x0 (0) at byte 10"),
    ("0080000006000000020000000003",
     "Bad POLYGON with dimensions 0x0 (0) in MULTIPOLYGON, expected dimensions 0x80000000 (2147483648) at byte 10"),
    ("0080000009000000020000000008",
     "Bad CIRCULARSTRING with dimensions 0x0 (0) in COMPOUNDCURVE, expected dimensions 0x80000000 (2147483648) "
     "at byte 10"),
    ("0080000009000000020000000001",
     "Unexpected POINT with dimensions 0x0 (0) in COMPOUNDCURVE, expected LINESTRING or CIRCULARSTRING with "
     "dimensions 0x80000000 (2147483648) at byte 10"),
    ("000000000a000000010080000009",
     "Bad COMPOUNDCURVE with dimensions 0x80000000 (2147483648) in CURVEPOLYGON, expected dimensions 0x0 (0) "
     "at byte 10"),
    ("008000000a000000010080000009000000020000000008",
     "Bad CIRCULARSTRING with dimensions 0x0 (0) in CURVEPOLYGON, expected dimensions 0x80000000 (2147483648) "
     "at byte 19"),
    ("004000000b000000010040000003",
     "Unexpected POLYGON with dimensions 0x40000000 (1073741824) in MULTICURVE, expected LINESTRING, "
     "CIRCULARSTRING or COMPOUNDCURVE with dimensions 0x40000000 (1073741824) at byte 10"),
    ("008000000c000000020080000001",
     "Unexpected POINT with dimensions 0x80000000 (2147483648) in MULTISURFACE, expected POLYGON or "
     "CURVEPOLYGON with dimensions 0x80000000 (2147483648) at byte 10"),
    ("010f000080050000000101000080",
     "Unexpected POINT with dimensions 0x80000000 (2147483648) in POLYHEDRALSURFACE, expected POLYGON with "
     "dimensions 0x80000000 (2147483648) at byte 10"),
])
def test_bad_streams(value, message):
    with pytest.raises(UnexpectedValueError) as excinfo:
        decode(value)
    assert str(excinfo.value) == message


def test_mismatch_carries_structured_fields():
    with pytest.raises(ChildTypeMismatchError) as excinfo:
        decode("004000000b000000010040000003")
    err = excinfo.value
    assert err.child_kind == "POLYGON"
    assert err.child_dimensions == 0x40000000
    assert err.container_kind == "MULTICURVE"
    assert err.expected_kinds == ("LINESTRING", "CIRCULARSTRING", "COMPOUNDCURVE")
    assert err.expected_dimensions == 0x40000000
    assert err.position == 10


def test_nested_mismatch_names_top_level_kind():
    data = wb.collection(0x80000007, [wb.collection(0x80000004, [wb.point(1, [1.0, 2.0])])])
    with pytest.raises(ChildTypeMismatchError) as excinfo:
        decode(data)
    err = excinfo.value
    assert str(err) == (
        "Bad POINT with dimensions 0x0 (0) in GEOMETRYCOLLECTION, expected dimensions "
        "0x80000000 (2147483648) at byte 19"
    )
    assert err.container_kind == "GEOMETRYCOLLECTION"
    assert err.expected_kinds == ("POINT",)


def test_position_is_structured_and_kind_preserved():
    with pytest.raises(UnexpectedValueError) as excinfo:
        decode("03010000003D0AD7A3701D41400000000000C055C0")
    assert type(excinfo.value) is UnexpectedValueError
    assert excinfo.value.position == 0
    assert isinstance(excinfo.value, ValueError)


def test_short_point():
    with pytest.raises(UnexpectedValueError, match=r"^Not enough input: need 16 bytes but only 12 remain at byte 5$"):
        decode("01010000003D0AD7A3701D414000000000")


def test_negative_count():
    data = wb.header(2) + wb.count(-1)
    with pytest.raises(UnexpectedValueError, match="Invalid element count -1 at byte 5"):
        decode(data)


@pytest.mark.parametrize("value", [b"", "", "not hex", 12])
def test_invalid_input(value):
    with pytest.raises(InvalidArgumentError):
        decode(value)
