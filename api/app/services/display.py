"""Human-facing rating display: formatted values and the HTML rating badge.

Ratings are stored on a percentage scale; the decimal (1-10) and star (1-5)
forms are derived by division. Whole numbers print without a trailing ".0"
("90%"), matching what theme templates have always shown.
"""

from typing import Optional, Union

from jinja2 import DictLoader, Environment, select_autoescape

from app.schemas.rating import AggregateRecord, round_rating

SHOW_OPTIONS = ("all", "rating", "count", "stars")
FORMAT_OPTIONS = ("percentage", "decimal", "stars")
DEFAULT_BADGE_CLASS = "rs-aggregate-rating"
STAR_COUNT = 5

_BADGE_TEMPLATE = """\
<div class="{{ css_class }}">
{%- if show == "rating" -%}
<span class="rs-rating">{{ percentage }}</span>
{%- elif show == "count" -%}
<span class="rs-count">{{ count_label }}</span>
{%- elif show == "stars" -%}
<span class="rs-stars">
{%- for filled in stars -%}
{%- if filled %}<span class="star filled">★</span>{% else %}<span class="star empty">☆</span>{% endif -%}
{%- endfor -%}
</span>
{%- else -%}
<span class="rs-rating">{{ percentage }}</span> <span class="rs-separator">-</span> <span class="rs-count">{{ count_label }}</span>
{%- endif -%}
</div>"""

_env = Environment(
    loader=DictLoader({"badge.html": _BADGE_TEMPLATE}),
    autoescape=select_autoescape(["html"]),
)


def _number(value: float) -> str:
    return f"{round_rating(value):g}"


def format_percentage(record: AggregateRecord) -> str:
    return f"{_number(record.average_rating)}%"


def format_rating(record: Optional[AggregateRecord], fmt: str = "percentage") -> Union[str, float]:
    """Format an average rating.

    percentage -> "76.3%", decimal -> 1-10 scale, stars -> 1-5 scale, any
    other format -> the raw average. No record formats as "".
    """
    if record is None:
        return ""
    if fmt == "percentage":
        return format_percentage(record)
    if fmt == "decimal":
        return round_rating(record.average_rating / 10)
    if fmt == "stars":
        return round_rating(record.average_rating / 20)
    return record.average_rating


def review_count_label(count: int) -> str:
    return f"{count} review" if count == 1 else f"{count} reviews"


def filled_stars(record: AggregateRecord) -> list[bool]:
    # Half rounds up: 90% is 4.5 stars, shown as 5
    filled = round_rating(record.average_rating / 20, 0)
    return [position <= filled for position in range(1, STAR_COUNT + 1)]


def render_badge(
    record: Optional[AggregateRecord],
    show: str = "all",
    css_class: str = DEFAULT_BADGE_CLASS,
) -> str:
    """HTML rating badge; empty string when there is no rating data."""
    if record is None:
        return ""
    template = _env.get_template("badge.html")
    return template.render(
        css_class=css_class,
        show=show if show in SHOW_OPTIONS else "all",
        percentage=format_percentage(record),
        count_label=review_count_label(record.review_count),
        stars=filled_stars(record),
    )


def has_aggregate_reviews(record: Optional[AggregateRecord]) -> bool:
    return record is not None and record.review_count > 0


def review_count(record: Optional[AggregateRecord]) -> int:
    return record.review_count if record is not None else 0


def average_rating(record: Optional[AggregateRecord]) -> float:
    return record.average_rating if record is not None else 0.0
