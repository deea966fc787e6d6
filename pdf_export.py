"""
pdf_export.py: Printable implementation checklist.

Usage:
    from pdf_export import build_checklist_pdf
    pdf_bytes = build_checklist_pdf(implementation_rows(store.rows))
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from fpdf import FPDF

from checklist import TARGET_SCORE

# ---------------------------------------------------------------------------
# Latin-1 sanitiser: Helvetica only supports Latin-1 (no emoji / Unicode)
# ---------------------------------------------------------------------------
_REPLACEMENTS = {
    "\u2026": "...",   # ellipsis
    "\u2018": "'",     # left single quote
    "\u2019": "'",     # right single quote
    "\u201c": '"',     # left double quote
    "\u201d": '"',     # right double quote
    "\u2013": "-",     # en dash
    "\u2014": "--",    # em dash
    "\u2022": "*",     # bullet
    "\u2192": "->",    # arrow
    "\u221a": "v",     # square root, used as a check mark
}

def _s(text) -> str:
    """Return a Latin-1-safe, single-line string for fpdf cell() calls."""
    t = str(text)
    for char, repl in _REPLACEMENTS.items():
        t = t.replace(char, repl)
    t = t.replace("\n", " ").replace("\r", " ").replace("\t", " ")
    return t.encode("latin-1", errors="replace").decode("latin-1")


def _ms(text) -> str:
    """Latin-1-safe string that preserves newlines for multi_cell()."""
    t = str(text)
    for char, repl in _REPLACEMENTS.items():
        t = t.replace(char, repl)
    t = t.replace("\r", "").replace("\t", " ")
    return t.encode("latin-1", errors="replace").decode("latin-1")

# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------
MIDNIGHT   = (21,  37,  52)   # headings / cover
PINK       = (226, 26, 107)   # section titles
BLUSH      = (247, 191, 213)  # section title bg
GRAY_BG    = (248, 250, 252)  # table row bg
GRAY_LINE  = (226, 232, 240)  # dividers
GRAY_TEXT  = (100, 116, 139)  # secondary text
GREEN      = (22, 163,  74)   # low severity
AMBER      = (217, 119,   6)  # medium severity
RED        = (220,  38,  38)  # high severity
WHITE      = (255, 255, 255)


def _severity_color(severity: int):
    if severity >= 7:
        return RED
    if severity >= 4:
        return AMBER
    return GREEN


# ---------------------------------------------------------------------------
# PDF subclass with helpers
# ---------------------------------------------------------------------------

class ChecklistReport(FPDF):
    def __init__(self, rows: list[dict]):
        super().__init__()
        self.rows = rows
        self.set_margins(18, 18, 18)
        self.set_auto_page_break(auto=True, margin=22)

    def header(self):
        if self.page_no() == 1:
            return
        self.set_font("Helvetica", "B", 8)
        self.set_text_color(*GRAY_TEXT)
        self.cell(0, 6, "Implementation Checklist", align="L")
        self.ln(1)
        self.set_draw_color(*GRAY_LINE)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.ln(4)

    def footer(self):
        self.set_y(-16)
        self.set_font("Helvetica", "", 8)
        self.set_text_color(*GRAY_TEXT)
        self.cell(0, 6, f"Page {self.page_no()} of {{nb}}", align="C")

    def rule(self):
        self.set_draw_color(*GRAY_LINE)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.ln(3)

    def section_title(self, tag: str, title: str):
        self.ln(4)
        self.set_fill_color(*BLUSH)
        self.set_text_color(*PINK)
        self.set_font("Helvetica", "B", 11)
        self.cell(0, 8, _s(f"  [{tag}]  {title}"), fill=True, ln=True)
        self.ln(2)

    def kv(self, key: str, value: str):
        self.set_font("Helvetica", "B", 9)
        self.set_text_color(*GRAY_TEXT)
        self.cell(32, 5, _s(f"{key}:"))
        self.set_font("Helvetica", "", 9)
        self.set_text_color(*MIDNIGHT)
        self.multi_cell(0, 5, _s(value))
        self.set_x(self.l_margin)

    def block(self, label: str, text: str):
        """Label plus free text that keeps its line breaks."""
        if not text:
            return
        self.set_font("Helvetica", "B", 7)
        self.set_text_color(*GRAY_TEXT)
        self.cell(0, 5, _s(label.upper()), ln=True)
        self.set_font("Helvetica", "", 8)
        self.set_text_color(*MIDNIGHT)
        self.multi_cell(0, 4.5, _ms(text))
        self.set_x(self.l_margin)
        self.ln(1)

    def severity_badge(self, severity: int):
        """Inline coloured badge with the severity weight."""
        label = f"SEV {severity}" if severity else "N/A"
        self.set_font("Helvetica", "B", 7)
        self.set_text_color(*WHITE)
        self.set_fill_color(*(_severity_color(severity) if severity else GRAY_TEXT))
        self.cell(14, 5, label, fill=True, align="C")
        self.set_text_color(*MIDNIGHT)
        self.set_fill_color(*WHITE)


# ---------------------------------------------------------------------------
# Section renderers
# ---------------------------------------------------------------------------

def _cover(pdf: ChecklistReport):
    pdf.add_page()

    pdf.set_fill_color(*MIDNIGHT)
    pdf.rect(0, 0, pdf.w, 56, "F")

    pdf.set_xy(18, 18)
    pdf.set_font("Helvetica", "B", 22)
    pdf.set_text_color(*WHITE)
    pdf.cell(0, 10, "Implementation Checklist", ln=True)

    pdf.set_x(18)
    pdf.set_font("Helvetica", "", 11)
    pdf.set_text_color(*BLUSH)
    pdf.cell(0, 8, "Technical SEO analysis", ln=True)

    pdf.set_xy(18, 62)
    done = sum(1 for r in pdf.rows if r.get("check"))
    by_implementer = Counter(r.get("implementer") or "Unassigned" for r in pdf.rows)
    pdf.kv("Date", datetime.now().strftime("%B %d, %Y"))
    pdf.kv("Open items", str(len(pdf.rows) - done))
    pdf.kv("Completed", str(done))
    pdf.kv("Target score", TARGET_SCORE)
    pdf.kv("Owners", ", ".join(f"{k} ({v})" for k, v in by_implementer.most_common()))
    pdf.ln(4)
    pdf.rule()


def _items(pdf: ChecklistReport):
    if not pdf.rows:
        pdf.section_title("OK", "Nothing left to implement")
        return
    pdf.section_title("!", "Items by priority")
    for i, row in enumerate(pdf.rows, 1):
        y = pdf.get_y()
        if i % 2 == 0:
            pdf.set_fill_color(*GRAY_BG)
            pdf.rect(pdf.l_margin, y, pdf.w - pdf.l_margin - pdf.r_margin, 6, "F")
        pdf.set_font("Helvetica", "B", 9)
        pdf.set_text_color(*MIDNIGHT)
        box = "[x]" if row.get("check") else "[ ]"
        priority = row.get("priority") or "-"
        pdf.cell(18, 6, _s(f"{box} {priority}"))
        pdf.severity_badge(int(row.get("severity") or 0))
        pdf.set_font("Helvetica", "B", 9)
        pdf.set_text_color(*MIDNIGHT)
        pdf.cell(0, 6, _s(f"  {row.get('inspectionElement', '')}")[:90], ln=True)

        pdf.set_font("Helvetica", "", 8)
        pdf.set_text_color(*GRAY_TEXT)
        meta = (
            f"{row.get('issueCategory', '')} / {row.get('issueSubCategory', '')}"
            f"  |  Score {row.get('score') or 'unset'}"
            f"  |  {row.get('implementer') or 'Unassigned'}"
        )
        pdf.cell(0, 5, _s(meta), ln=True)
        pdf.block("Analysis", row.get("analysis") or "")
        pdf.block("Recommendations", row.get("recommendations") or "")
        pdf.ln(2)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_checklist_pdf(rows: list[dict]) -> bytes:
    """
    Build a PDF from implementation-checklist rows (already ranked, each with
    a "severity"). Returns raw PDF bytes ready to send as an HTTP response.
    """
    pdf = ChecklistReport(rows)
    pdf.alias_nb_pages()

    _cover(pdf)
    _items(pdf)

    return bytes(pdf.output())
