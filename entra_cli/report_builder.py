"""Self-contained HTML report builder.

Usage:
    from .report_builder import ReportBuilder

    rb = ReportBuilder(title="App Role Assignments", subtitle="contoso-api")
    rb.add_kv("Summary", {"Assignments": 12, "Resources": 3})
    rb.add_table("Assignments", columns=["Resource", "Role"], rows=[["Graph", "User.Read.All"]])
    rb.save("assignments.html")
"""

import os
import webbrowser
from datetime import datetime, timezone
from html import escape


def _esc(val) -> str:
    return escape(str(val)) if val is not None else ""


_CSS = """\
*,*::before,*::after{box-sizing:border-box;margin:0;padding:0}
:root{
  --bg:#ffffff;--bg-card:#f6f8fa;--text:#1f2328;--text-secondary:#59636e;
  --border:#d1d9e0;--accent:#0f6cbd;
  --font-sans:'Segoe UI',ui-sans-serif,system-ui,-apple-system,sans-serif;
}
body{font-family:var(--font-sans);background:var(--bg);color:var(--text);line-height:1.6}
.container{max-width:1100px;margin:0 auto;padding:2rem 1.5rem}
.report-header{padding:1.25rem 1.5rem;border-bottom:3px solid var(--accent);margin-bottom:1.5rem}
.report-header h1{font-size:1.25rem;font-weight:600}
.report-header .subtitle{font-size:.9rem;color:var(--text-secondary)}
.report-header .meta{font-size:.75rem;color:var(--text-secondary);margin-top:.25rem}
.section{margin-bottom:1.5rem}
.section-title{font-size:1rem;font-weight:600;margin-bottom:.75rem;padding-bottom:.35rem;border-bottom:1px solid var(--border)}
.cards-grid{display:grid;grid-template-columns:repeat(auto-fit,minmax(180px,1fr));gap:1rem}
.card{padding:1rem;background:var(--bg-card);border:1px solid var(--border);border-radius:8px}
.card-label{font-size:.8rem;color:var(--text-secondary)}
.card-value{font-size:1.4rem;font-weight:700}
table{width:100%;border-collapse:collapse;font-size:.85rem}
thead th{text-align:left;padding:.5rem .75rem;background:var(--bg-card);border-bottom:1px solid var(--border);
  font-size:.75rem;text-transform:uppercase;letter-spacing:.04em;color:var(--text-secondary)}
tbody td{padding:.5rem .75rem;border-bottom:1px solid var(--border);word-break:break-all}
.empty{color:var(--text-secondary);font-style:italic}
@media print{.container{max-width:100%;padding:0}}"""


class ReportBuilder:
    """Build a single-file HTML report from key-value and table sections."""

    def __init__(self, title: str, subtitle: str = ""):
        self.title = title
        self.subtitle = subtitle
        self._sections: list[str] = []

    def add_kv(self, heading: str, data: dict):
        """Add a row of metric cards."""
        cards = "".join(
            f'<div class="card"><div class="card-label">{_esc(label)}</div>'
            f'<div class="card-value">{_esc(value)}</div></div>'
            for label, value in data.items()
        )
        self._sections.append(
            f'<div class="section"><div class="section-title">{_esc(heading)}</div>'
            f'<div class="cards-grid">{cards}</div></div>'
        )

    def add_table(self, heading: str, columns: list[str], rows: list[list]):
        """Add a data table. Cell values are escaped."""
        ths = "".join(f"<th>{_esc(c)}</th>" for c in columns)
        if rows:
            body = "".join(
                "<tr>" + "".join(f"<td>{_esc(cell)}</td>" for cell in row) + "</tr>"
                for row in rows
            )
        else:
            body = f'<tr><td class="empty" colspan="{len(columns)}">No entries</td></tr>'

        self._sections.append(
            f'<div class="section"><div class="section-title">{_esc(heading)}</div>'
            f'<table><thead><tr>{ths}</tr></thead><tbody>{body}</tbody></table></div>'
        )

    def render(self) -> str:
        """Return the complete HTML document as a string."""
        generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        subtitle_html = f'<div class="subtitle">{_esc(self.subtitle)}</div>' if self.subtitle else ""

        parts = [
            '<!DOCTYPE html>\n<html lang="en">\n<head>\n<meta charset="UTF-8">',
            f"<title>{_esc(self.title)}</title>",
            f"<style>\n{_CSS}\n</style>\n</head>\n<body>",
            '<div class="container">',
            f'<div class="report-header"><h1>{_esc(self.title)}</h1>{subtitle_html}'
            f'<div class="meta">Generated {generated_at}</div></div>',
        ]
        parts.extend(self._sections)
        parts.append("</div>\n</body></html>")
        return "\n".join(parts)

    def save(self, path: str | None = None, open_browser: bool = True) -> str:
        """Write the report to *path* and optionally open it in the default browser.

        Returns the absolute path of the written file.
        """
        if path is None:
            date_str = datetime.now().strftime("%Y-%m-%d")
            slug = self.title.lower().replace(" ", "-")[:30]
            path = f"{slug}-report-{date_str}.html"

        abs_path = os.path.abspath(path)
        with open(abs_path, "w", encoding="utf-8") as f:
            f.write(self.render())

        if open_browser:
            try:
                webbrowser.open(f"file://{abs_path}")
            except webbrowser.Error:
                pass  # the path is printed anyway

        return abs_path
