# ------------------------------------------------------------------------
# File: layout.py
# Location: kontrak/core/layout.py
# Description:
#     Top-down page layout on a reportlab canvas. PageLayout keeps the
#     current page number and a vertical cursor measured from the top edge
#     of the page. emit() places one block (any platypus flowable) at the
#     cursor, splits or moves it to a new page when it does not fit, and
#     schedules a page break once the cursor passes the near-bottom
#     threshold. Callers only decide what to emit, never where.
# ------------------------------------------------------------------------

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

PAGE_MARGIN = 50
BREAK_THRESHOLD = 720


class PageLayout:
    def __init__(self, pdf_canvas: canvas.Canvas, pagesize=letter,
                 margin: float = PAGE_MARGIN, break_threshold: float = BREAK_THRESHOLD):
        self.canvas = pdf_canvas
        self.page_width, self.page_height = pagesize
        self.margin = margin
        self.break_threshold = break_threshold
        self.page_number = 1
        self.cursor = margin
        self._break_pending = False

    @property
    def frame_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def bottom(self) -> float:
        return self.page_height - self.margin

    def new_page(self) -> None:
        self.canvas.showPage()
        self.page_number += 1
        self.cursor = self.margin
        self._break_pending = False

    def move_down(self, amount: float) -> None:
        # A gap belongs to the page that holds the next block
        if self._break_pending:
            self.new_page()
        self.cursor += amount

    def _draw(self, flowable, width: float, height: float) -> None:
        y = self.page_height - self.cursor - height
        flowable.drawOn(self.canvas, self.margin, y, _sW=self.frame_width - width)
        self.cursor += height

    def emit(self, flowable, space_after: float = 0) -> None:
        """Place a block at the cursor, breaking pages as needed."""
        if self._break_pending:
            self.new_page()

        while True:
            available = self.bottom - self.cursor
            width, height = flowable.wrapOn(self.canvas, self.frame_width, available)
            if height <= available:
                break

            parts = flowable.splitOn(self.canvas, self.frame_width, available) if available > 0 else []
            if len(parts) >= 2:
                head, flowable = parts[0], parts[1]
                head_width, head_height = head.wrapOn(self.canvas, self.frame_width, available)
                self._draw(head, head_width, head_height)
                self.new_page()
                continue

            if self.cursor > self.margin:
                self.new_page()
                continue

            # Taller than an empty page and cannot be split
            break

        self._draw(flowable, width, height)
        self.cursor += space_after

        if self.cursor > self.break_threshold:
            self._break_pending = True
