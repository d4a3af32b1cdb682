"""A4 dive report rendered to PDF.

Pages are drawn as 150 dpi raster images with Pillow and bundled into one PDF,
the same snapshot-of-the-printed-layout result the report screen produces.
"""
import io
from datetime import datetime
from typing import List, Optional

from PIL import Image, ImageDraw, ImageFont

from divelog.schemas.report import DiveReportOut
from divelog.utils.dives import as_utc

DPI = 150
PAGE_W, PAGE_H = 1240, 1754   # A4 at 150 dpi
MARGIN = 90
LINE = 30
COL_TIME, COL_DEPTH, COL_EVENT = MARGIN, MARGIN + 140, MARGIN + 280

_BLACK = (0, 0, 0)
_GREY = (90, 90, 90)
_RULE = (200, 200, 200)
_HEADER_FILL = (235, 238, 242)


def _font(size: int):
    return ImageFont.load_default(size=size)


def _hhmm(dt: Optional[datetime]) -> str:
    return as_utc(dt).strftime("%H:%M") if dt else "---"


def _depth(value: Optional[float]) -> str:
    return f"{value:g}" if value is not None else "---"


def _wrap(draw: ImageDraw.ImageDraw, text: str, font, width: int) -> List[str]:
    lines, current = [], ""
    for word in text.split():
        candidate = f"{current} {word}".strip()
        if current and draw.textlength(candidate, font=font) > width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines or [""]


def _info_rows(report: DiveReportOut) -> List[tuple]:
    dive, job, diver = report.dive, report.job, report.diver
    return [
        ("Job", job.job_name), ("Client", job.client_name or ""),
        ("Location", job.location or ""), ("Date", dive.date.strftime("%d %b %Y")),
        ("Diver", f"{diver.full_name} ({diver.rank})"), ("Supervisor", report.supervisor_name or "N/A"),
        ("Dive No", str(dive.dive_no or "---")), ("Max Depth", f"{_depth(dive.max_depth)} msw"),
        ("Start Time", _hhmm(dive.started_at)), ("End Time", _hhmm(dive.ended_at)),
        ("Bottom Time", dive.bottom_time or ""), ("Status", dive.status.value.replace("_", " ")),
    ]


class _Pages:
    def __init__(self):
        self.images: List[Image.Image] = []
        self.draw: ImageDraw.ImageDraw
        self.y = 0
        self.new_page()

    def new_page(self) -> None:
        image = Image.new("RGB", (PAGE_W, PAGE_H), "white")
        self.images.append(image)
        self.draw = ImageDraw.Draw(image)
        self.y = MARGIN

    def ensure(self, height: int, on_break=None) -> None:
        if self.y + height > PAGE_H - MARGIN - LINE:
            self.new_page()
            if on_break:
                on_break()


def render_dive_report(report: DiveReportOut) -> bytes:
    pages = _Pages()
    title, sub, body, bold = _font(40), _font(20), _font(20), _font(22)

    # header
    d = pages.draw
    heading = "DIVING OPERATIONS LOG"
    d.text(((PAGE_W - d.textlength(heading, font=title)) / 2, pages.y), heading, font=title, fill=_BLACK)
    pages.y += 55
    division = "Offshore Division"
    d.text(((PAGE_W - d.textlength(division, font=sub)) / 2, pages.y), division, font=sub, fill=_GREY)
    pages.y += 40
    d.line([(MARGIN, pages.y), (PAGE_W - MARGIN, pages.y)], fill=_BLACK, width=3)
    pages.y += 30

    # info grid, two columns
    half = (PAGE_W - 2 * MARGIN) // 2
    rows = _info_rows(report)
    for i in range(0, len(rows), 2):
        for col, (label, value) in enumerate(rows[i:i + 2]):
            x = MARGIN + col * half
            d.text((x, pages.y), f"{label}:", font=bold, fill=_BLACK)
            d.text((x + 170, pages.y), value, font=body, fill=_BLACK)
        pages.y += LINE + 6
        d.line([(MARGIN, pages.y - 6), (PAGE_W - MARGIN, pages.y - 6)], fill=_RULE, width=1)
    pages.y += 30

    d.text((MARGIN, pages.y), "TIME / DEPTH / EVENT LOG", font=bold, fill=_BLACK)
    pages.y += LINE + 4

    def table_header():
        dr = pages.draw
        dr.rectangle([(MARGIN, pages.y), (PAGE_W - MARGIN, pages.y + LINE + 6)], fill=_HEADER_FILL, outline=_BLACK)
        for x, label in ((COL_TIME, "Time"), (COL_DEPTH, "Depth"), (COL_EVENT, "Event / Observation")):
            dr.text((x + 10, pages.y + 6), label, font=bold, fill=_BLACK)
        pages.y += LINE + 12

    table_header()
    event_width = PAGE_W - MARGIN - COL_EVENT - 20
    if not report.events:
        pages.draw.text((COL_EVENT + 10, pages.y), "No events logged.", font=body, fill=_GREY)
        pages.y += LINE
    for event in report.events:
        text = event.event_type + (f"  {event.description}" if event.description else "")
        lines = _wrap(pages.draw, text, body, event_width)
        pages.ensure(len(lines) * LINE + 8, on_break=table_header)
        dr = pages.draw
        dr.text((COL_TIME + 10, pages.y), _hhmm(event.event_time), font=body, fill=_BLACK)
        dr.text((COL_DEPTH + 10, pages.y), f"{_depth(event.depth)}m", font=body, fill=_BLACK)
        for n, line in enumerate(lines):
            dr.text((COL_EVENT + 10, pages.y + n * LINE), line, font=body, fill=_BLACK)
        pages.y += len(lines) * LINE + 8
        dr.line([(MARGIN, pages.y - 4), (PAGE_W - MARGIN, pages.y - 4)], fill=_RULE, width=1)

    total = len(pages.images)
    for n, image in enumerate(pages.images, 1):
        footer = f"Page {n} of {total}"
        dr = ImageDraw.Draw(image)
        dr.text((PAGE_W - MARGIN - dr.textlength(footer, font=sub), PAGE_H - MARGIN), footer, font=sub, fill=_GREY)

    buf = io.BytesIO()
    first, rest = pages.images[0], pages.images[1:]
    first.save(buf, format="PDF", resolution=DPI, save_all=True, append_images=rest)
    return buf.getvalue()


def report_filename(report: DiveReportOut) -> str:
    diver = "".join(c if c.isalnum() else "_" for c in report.diver.full_name)
    return f"dive_{report.dive.date.isoformat()}_{report.dive.dive_no or 'x'}_{diver}.pdf"
