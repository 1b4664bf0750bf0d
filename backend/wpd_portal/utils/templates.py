from datetime import date

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

env = Environment(
    loader=PackageLoader("wpd_portal", "templates"),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
)


def render_template(template_name: str, /, **context) -> str:
    return env.get_template(template_name).render(**context)


def format_issue_date(day: date) -> str:
    """e.g. "May 20, 2025" """
    return f"{day:%B} {day.day}, {day.year}"
