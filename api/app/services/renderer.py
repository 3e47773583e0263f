"""JSON-LD head block rendering.

Only Standalone plans produce text. The block is framed by fixed comment
lines so the markup can be located in page source:

    <!-- RatingSchema Aggregate Schema -->
    <script type="application/ld+json">
    { ... }
    </script>
    <!-- /RatingSchema Aggregate Schema -->

JSON is pretty-printed with 2-space indentation, Unicode kept as-is (titles
in any script survive) and slashes left unescaped, except inside "</" which
would otherwise end the script element early.
"""

import json
from typing import Optional, Union

from app.services.integration import RenderPlan, Standalone

BLOCK_LABEL = "RatingSchema Aggregate Schema"
BLOCK_OPEN = f"<!-- {BLOCK_LABEL} -->"
BLOCK_CLOSE = f"<!-- /{BLOCK_LABEL} -->"
SCRIPT_OPEN = '<script type="application/ld+json">'
SCRIPT_CLOSE = "</script>"


def to_json(record: Union[dict, list]) -> str:
    encoded = json.dumps(record, indent=2, ensure_ascii=False)
    return encoded.replace("</", "<\\/")


def render_block(record: Union[dict, list]) -> str:
    return (
        f"\n{BLOCK_OPEN}\n"
        f"{SCRIPT_OPEN}\n"
        f"{to_json(record)}\n"
        f"{SCRIPT_CLOSE}\n"
        f"{BLOCK_CLOSE}\n\n"
    )


def render(plan: RenderPlan) -> Optional[str]:
    if isinstance(plan, Standalone):
        return render_block(plan.record)
    return None
