"""
Second Brain — Plan HTML export.

A self-contained, print-ready page. Opening it triggers the browser's print
dialog so the user can save it as a PDF client-side.
"""

from __future__ import annotations

from jinja2 import DictLoader, Environment

from src.export.document import PlanDocument

_PLAN_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ doc.title }} - Implementation Plan</title>
<style>
  body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
         max-width: 800px; margin: 0 auto; padding: 40px; color: #1a1a1a; line-height: 1.6; }
  .header { border-bottom: 2px solid #7c3aed; padding-bottom: 20px; margin-bottom: 30px; }
  .category { font-size: 12px; font-weight: 600; text-transform: uppercase; color: #92400e;
              background: #fef3c7; padding: 4px 12px; border-radius: 999px; }
  .date { font-size: 12px; color: #9ca3af; margin-left: 12px; }
  h1 { font-size: 28px; margin: 16px 0 8px; }
  .summary { font-size: 16px; color: #4b5563; }
  .time-estimate { background: #f3f4f6; padding: 12px 20px; border-radius: 8px; margin-bottom: 30px; }
  h2 { font-size: 18px; border-bottom: 1px solid #e5e7eb; padding-bottom: 8px; }
  .step { display: flex; gap: 16px; margin-bottom: 20px; }
  .step-number { flex-shrink: 0; width: 28px; height: 28px; border-radius: 50%; background: #ede9fe;
                 color: #7c3aed; font-weight: 600; display: flex; align-items: center; justify-content: center; }
  .step-title { font-weight: 600; margin: 0 0 4px; }
  .step-description { color: #4b5563; margin: 0; }
  ul { list-style: none; padding: 0; }
  li { padding: 4px 0 4px 24px; position: relative; color: #4b5563; }
  .resources li::before { content: "\\2713"; color: #10b981; position: absolute; left: 0; }
  .considerations li::before { content: "\\26A0"; color: #f59e0b; position: absolute; left: 0; }
  .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb;
            font-size: 12px; color: #9ca3af; text-align: center; }
  @media print { body { padding: 20px; } .step { page-break-inside: avoid; } }
</style>
</head>
<body>
<div class="header">
  <span class="category">{{ doc.category_label }}</span>
  {%- if doc.date_label %}<span class="date">{{ doc.date_label }}</span>{% endif %}
  <h1>{{ doc.title }}</h1>
  <p class="summary">{{ doc.summary }}</p>
</div>
<div class="time-estimate">Estimated time: <strong>{{ doc.time_estimate }}</strong></div>
<h2>Implementation Steps</h2>
{%- for step in doc.steps %}
<div class="step">
  <div class="step-number">{{ loop.index }}</div>
  <div>
    <p class="step-title">{{ step.title }}</p>
    <p class="step-description">{{ step.description }}</p>
  </div>
</div>
{%- endfor %}
{%- if doc.resources %}
<h2>Helpful Resources</h2>
<ul class="resources">
{%- for item in doc.resources %}
  <li>{{ item }}</li>
{%- endfor %}
</ul>
{%- endif %}
{%- if doc.considerations %}
<h2>Things to Consider</h2>
<ul class="considerations">
{%- for item in doc.considerations %}
  <li>{{ item }}</li>
{%- endfor %}
</ul>
{%- endif %}
<div class="footer">{{ doc.footer }}</div>
<script>window.onload = function () { window.print(); };</script>
</body>
</html>
"""

_env = Environment(loader=DictLoader({"plan.html": _PLAN_TEMPLATE}), autoescape=True)


def render_plan_html(doc: PlanDocument) -> str:
    return _env.get_template("plan.html").render(doc=doc)
