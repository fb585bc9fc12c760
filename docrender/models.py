from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


PreviewMode = Literal["record", "fieldCode"]
Region = Literal["header", "body", "footer"]
Align = Literal["left", "center", "right"]
Overflow = Literal["wrap", "shrink", "ellipsis", "clip"]
ValueFormat = Literal["text", "number", "currency", "date"]
SummaryMode = Literal["none", "lastPageOnly", "everyPageSubtotal+lastTotal"]

TemplateDataRecord = Dict[str, Any]


class TemplateModel(BaseModel):
    """Base for template JSON: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ---------- data sources ----------
class StaticSource(TemplateModel):
    type: Literal["static"] = "static"
    value: Any = ""


class FieldSource(TemplateModel):
    type: Literal["kintone"] = "kintone"
    field_code: str = ""


class SubtableSource(TemplateModel):
    type: Literal["kintoneSubtable"] = "kintoneSubtable"
    field_code: str = ""


DataSource = Annotated[Union[StaticSource, FieldSource, SubtableSource], Field(discriminator="type")]


# ---------- elements ----------
class ElementBase(TemplateModel):
    id: str
    slot_id: Optional[str] = None
    region: Optional[Region] = None
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None
    repeat_on_every_page: Optional[bool] = None
    footer_repeat_mode: Literal["all", "last"] = "all"
    border_width: float = 0.0
    corner_radius: float = 0.0


class TextElement(ElementBase):
    type: Literal["text"] = "text"
    text: Optional[str] = None
    data_source: Optional[DataSource] = None
    font_size: float = 12.0
    font_weight: Literal["normal", "bold"] = "normal"
    align: Optional[Align] = None


class LabelElement(ElementBase):
    type: Literal["label"] = "label"
    text: str = ""
    font_size: float = 12.0
    font_weight: Literal["normal", "bold"] = "normal"
    align: Optional[Align] = None


class ImageElement(ElementBase):
    type: Literal["image"] = "image"
    data_source: Optional[DataSource] = None


class TableColumn(TemplateModel):
    id: str
    title: str = ""
    field_code: str = ""
    width: float = 80.0
    align: Optional[Align] = None
    overflow: Optional[Overflow] = None
    min_font_size: float = 6.0
    format: Optional[ValueFormat] = None


class SummaryRow(TemplateModel):
    op: Literal["sum", "static"] = "sum"
    column_id: Optional[str] = None
    field_code: Optional[str] = None
    kind: Literal["subtotal", "total", "both"] = "both"
    label: Optional[str] = None
    label_subtotal: Optional[str] = None
    label_total: Optional[str] = None
    value: Optional[str] = None


class SummaryStyle(TemplateModel):
    subtotal_fill_gray: float = 0.96
    total_fill_gray: float = 0.92
    total_top_border_width: float = 1.5
    border_color_gray: float = 0.85


class SummarySpec(TemplateModel):
    mode: SummaryMode = "none"
    rows: List[SummaryRow] = Field(default_factory=list)
    style: SummaryStyle = Field(default_factory=SummaryStyle)


class TableElement(ElementBase):
    type: Literal["table"] = "table"
    data_source: Optional[DataSource] = None
    columns: List[TableColumn] = Field(default_factory=list)
    row_height: float = 18.0
    header_height: Optional[float] = None
    font_size: float = 10.0
    show_grid: bool = True
    border_color_gray: float = 0.85
    header_fill_gray: float = 0.94
    summary: Optional[SummarySpec] = None


class CardField(TemplateModel):
    id: str
    label: str = ""
    field_code: Optional[str] = None
    align: Optional[Align] = None
    format: Optional[ValueFormat] = None


class CardListElement(ElementBase):
    type: Literal["cardList"] = "cardList"
    data_source: Optional[DataSource] = None
    fields: List[CardField] = Field(default_factory=list)
    card_height: float = 80.0
    gap_y: float = 11.0
    padding: float = 12.0
    border_width: float = 0.6
    border_color_gray: float = 0.84
    fill_gray: float = 0.91
    corner_radius: float = 8.0
    font_size: float = 10.0


TemplateElement = Annotated[
    Union[TextElement, LabelElement, ImageElement, TableElement, CardListElement],
    Field(discriminator="type"),
]


# ---------- template ----------
class RegionBand(TemplateModel):
    y_top: Optional[float] = None
    y_bottom: Optional[float] = None


class RegionBounds(TemplateModel):
    header: Optional[RegionBand] = None
    body: Optional[RegionBand] = None
    footer: Optional[RegionBand] = None


class SheetSettings(TemplateModel):
    paper_width_mm: float = 210.0
    paper_height_mm: float = 297.0
    cols: int = 2
    rows: int = 5
    margin_mm: float = 8.0
    gap_mm: float = 2.0
    offset_x_mm: float = Field(0.0, alias="offsetXmm")
    offset_y_mm: float = Field(0.0, alias="offsetYmm")


class LabelSlots(TemplateModel):
    title: Optional[str] = None
    code: Optional[str] = None
    qty: Optional[str] = None
    qr: Optional[str] = None
    extra: Optional[str] = None


class LabelMapping(TemplateModel):
    slots: LabelSlots = Field(default_factory=LabelSlots)
    copies_field_code: Optional[str] = None


class TemplateDefinition(TemplateModel):
    id: str
    name: str = ""
    page_size: Literal["A4", "Letter"] = "A4"
    orientation: Literal["portrait", "landscape"] = "portrait"
    canvas_width: Optional[float] = None
    canvas_height: Optional[float] = None
    structure_type: Optional[str] = None
    elements: List[TemplateElement] = Field(default_factory=list)
    region_bounds: Optional[RegionBounds] = None
    footer_reserve_height: Optional[float] = None
    sheet_settings: Optional[SheetSettings] = None
    mapping: Optional[Dict[str, Any]] = None

    @property
    def is_label_sheet(self) -> bool:
        return self.structure_type == "label_v1"

    def label_mapping(self) -> LabelMapping:
        return LabelMapping.model_validate(self.mapping or {})
