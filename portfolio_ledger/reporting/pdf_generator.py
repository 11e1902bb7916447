# portfolio_ledger/reporting/pdf_generator.py
import logging
from decimal import Decimal
from typing import List, Dict, Any, Optional
from datetime import datetime
from xml.sax.saxutils import escape

from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, PageBreak
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import cm
from reportlab.lib.enums import TA_LEFT, TA_CENTER, TA_RIGHT, TA_JUSTIFY

from portfolio_ledger.domain.positions import Position
from portfolio_ledger.domain.results import PortfolioSummary, RealizedGain, UnrealizedPnL
from portfolio_ledger.reporting.reporting_utils import format_amount_for_display, format_date_dmy
from portfolio_ledger import config as app_config

logger = logging.getLogger(__name__)


class PdfReportGenerator:
    def __init__(self,
                 summary: PortfolioSummary,
                 active_positions: Dict[str, Position],
                 unrealized: Dict[str, UnrealizedPnL],
                 realized_gains: List[RealizedGain],
                 historical_pnl: Decimal,
                 eur_per_usd: Optional[Decimal] = None,
                 report_version: str = "v1.0"):
        self.summary = summary
        self.active_positions = active_positions
        self.unrealized = unrealized
        self.realized_gains = realized_gains
        self.historical_pnl = historical_pnl
        self.eur_per_usd = eur_per_usd
        self.report_version = report_version

        self.styles = self._generate_styles()
        self.story: List[Any] = []

    def _generate_styles(self):
        styles = getSampleStyleSheet()

        styles.add(ParagraphStyle(name='H1', fontSize=16, leading=20, spaceAfter=10, alignment=TA_CENTER, fontName='Helvetica-Bold'))
        styles.add(ParagraphStyle(name='H2', fontSize=14, leading=18, spaceAfter=8, spaceBefore=12, fontName='Helvetica-Bold'))

        body_text_style = styles['BodyText']
        body_text_style.fontSize = 10
        body_text_style.leading = 12
        body_text_style.spaceAfter = 6
        body_text_style.fontName = 'Helvetica'

        styles.add(ParagraphStyle(name='SmallText', fontSize=8, leading=10, spaceAfter=4, fontName='Helvetica'))
        styles.add(ParagraphStyle(name='Disclaimer', fontSize=8, leading=10, spaceAfter=12, alignment=TA_JUSTIFY, fontName='Helvetica'))
        styles.add(ParagraphStyle(name='TableHeader', alignment=TA_CENTER, fontSize=8, fontName='Helvetica-Bold', textColor=colors.black))
        styles.add(ParagraphStyle(name='TableCell', alignment=TA_LEFT, fontSize=8, fontName='Helvetica', textColor=colors.black))
        styles.add(ParagraphStyle(name='TableCellRight', alignment=TA_RIGHT, fontSize=8, fontName='Helvetica', textColor=colors.black))

        return styles

    def _format_decimal(self, value: Optional[Decimal], precision_type: str = "total") -> str:
        if value is None:
            return ""
        return format_amount_for_display(value, precision_type)

    def _create_styled_table(self, data: List[List[Any]], col_widths: Optional[List[float]] = None,
                             extra_styles: Optional[List[Any]] = None, repeatRows=1) -> Table:
        styled_data = []
        for i, row_content in enumerate(data):
            styled_row = []
            for cell_content in row_content:
                if isinstance(cell_content, Paragraph):
                    styled_row.append(cell_content)
                elif i < repeatRows:
                    styled_row.append(Paragraph(escape(str(cell_content)), self.styles['TableHeader']))
                elif isinstance(cell_content, Decimal):
                    styled_row.append(Paragraph(self._format_decimal(cell_content), self.styles['TableCellRight']))
                else:
                    text = "" if cell_content is None else str(cell_content)
                    # Pre-formatted numbers ("1234,56", "-3,5") are right aligned
                    looks_numeric = bool(text) and (text[0].isdigit() or (text.startswith('-') and len(text) > 1 and text[1].isdigit()))
                    styled_row.append(Paragraph(escape(text), self.styles['TableCellRight' if looks_numeric else 'TableCell']))
            styled_data.append(styled_row)

        tbl = Table(styled_data, colWidths=col_widths, repeatRows=repeatRows)

        base_ts_cmds = [
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('LEFTPADDING', (0,0), (-1,-1), 3),
            ('RIGHTPADDING', (0,0), (-1,-1), 3),
            ('TOPPADDING', (0,0), (-1,-1), 2),
            ('BOTTOMPADDING', (0,0), (-1,-1), 2),
        ]
        if repeatRows > 0:
            base_ts_cmds.append(('BACKGROUND', (0, 0), (-1, repeatRows - 1), colors.lightgrey))
        if extra_styles:
            base_ts_cmds.extend(extra_styles)

        tbl.setStyle(TableStyle(base_ts_cmds))
        return tbl

    def _add_title_page(self):
        self.story.append(Paragraph("Portfolio Valuation and Realized Gains Report", self.styles['H1']))
        self.story.append(Spacer(1, 1*cm))
        self.story.append(Paragraph(f"Owner: {escape(app_config.PORTFOLIO_OWNER_NAME)}", self.styles['BodyText']))
        self.story.append(Paragraph(f"Report date: {datetime.now().strftime('%d/%m/%Y')}", self.styles['BodyText']))
        self.story.append(Paragraph(f"Reporting currency: {app_config.REPORTING_CURRENCY}", self.styles['BodyText']))
        if self.eur_per_usd is not None:
            self.story.append(Paragraph(f"EUR per USD: {self._format_decimal(self.eur_per_usd, 'price')}", self.styles['BodyText']))
        self.story.append(Paragraph(f"Report version: {self.report_version}", self.styles['BodyText']))
        self.story.append(Spacer(1, 0.5*cm))
        disclaimer_text = ("Open positions are valued with running weighted-average cost. Realized gains attribute "
                           "each sale to the oldest purchase lots (FIFO), so the two cost figures differ by design. "
                           "Currencies other than EUR and USD are valued at their purchase-time exchange rates.")
        self.story.append(Paragraph(disclaimer_text, self.styles['Disclaimer']))

    def _add_summary(self):
        self.story.append(Paragraph("Summary", self.styles['H2']))
        s = self.summary
        data = [
            ["Item", f"Value ({app_config.REPORTING_CURRENCY})"],
            ["Total value", s.total_value_eur],
            ["Total cost basis", s.total_cost_eur],
            ["Unrealized P&L", s.total_pnl_eur],
            ["Unrealized P&L (%)", s.total_pnl_percent],
            ["Historical realized P&L (closed positions)", self.historical_pnl],
            ["Open positions", str(s.positions_count)],
            ["Operations on open positions", str(s.operations_count)],
            ["Positions valued at cost basis (no quote)", str(s.positions_without_quote)],
        ]
        self.story.append(self._create_styled_table(data, col_widths=[10*cm, 5*cm]))

    def _add_open_positions(self):
        self.story.append(Paragraph("Open Positions", self.styles['H2']))
        if not self.active_positions:
            self.story.append(Paragraph("No open positions.", self.styles['BodyText']))
            return

        data = [["Company", "Symbol", "Shares", "Currency", "Cost (EUR)", "Avg cost (EUR)", "Value (EUR)", "P&L (EUR)", "P&L %"]]
        for key, position in self.active_positions.items():
            pnl = self.unrealized.get(key)
            value_text = self._format_decimal(pnl.current_value_eur) if pnl else ""
            if pnl is not None and not pnl.quote_available:
                value_text += " *"
            data.append([
                position.company,
                position.symbol,
                self._format_decimal(position.shares, "quantity"),
                position.currency,
                position.total_cost,
                self._format_decimal(position.average_cost_eur, "price"),
                value_text,
                pnl.pnl_eur if pnl else "",
                pnl.pnl_percent if pnl else "",
            ])
        self.story.append(self._create_styled_table(data))
        self.story.append(Paragraph("* no quote available, valued at cost basis", self.styles['SmallText']))

    def _add_realized_gains(self):
        self.story.append(Paragraph("Realized Gains (FIFO)", self.styles['H2']))
        if not self.realized_gains:
            self.story.append(Paragraph("No sales recorded.", self.styles['BodyText']))
            return

        data = [["Company", "Avg purchase", "Sale date", "Shares", "Cost (EUR)", "Net proceeds (EUR)",
                 "Gain (EUR)", "Retention", "Net gain"]]
        total_gain = Decimal("0")
        total_net = Decimal("0")
        for gain in self.realized_gains:
            data.append([
                gain.company,
                format_date_dmy(gain.average_purchase_date),
                format_date_dmy(gain.sale_date),
                self._format_decimal(gain.shares_sold, "quantity"),
                gain.cost_basis_eur,
                gain.net_sale_proceeds_eur,
                gain.gain_eur,
                gain.retention_eur,
                gain.net_gain_eur,
            ])
            total_gain += gain.gain_eur
            total_net += gain.net_gain_eur
        data.append(["Total", "", "", "", "", "", total_gain, "", total_net])
        self.story.append(self._create_styled_table(
            data, extra_styles=[('BACKGROUND', (0, -1), (-1, -1), colors.whitesmoke)]
        ))

    def generate_report(self, output_file_path: str):
        logger.info(f"Generating PDF report: {output_file_path}")
        doc = SimpleDocTemplate(output_file_path, pagesize=landscape(A4))

        self.story = []
        self._add_title_page()
        self._add_summary()
        self.story.append(PageBreak())
        self._add_open_positions()
        self._add_realized_gains()

        try:
            doc.build(self.story)
            logger.info(f"PDF report written: {output_file_path}")
        except Exception as e:
            logger.error(f"Error while building PDF report: {e}", exc_info=True)
            raise
