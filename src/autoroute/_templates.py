"""Kida templates for generated registration modules.

Every value reaching a template is already a Python literal or dotted
name (rendered with ``repr`` by the synthesizer), so the templates only
lay out lines. Block tags sit at column 0 so indentation of the emitted
code does not depend on whitespace control.

Handler modules are imported under private aliases: a unit named like a
generated name (``config``, ``Scope``, ``ROUTES``) must not shadow it.
"""

MODULE_TEMPLATE = "routes_module.py"

ROUTES_MODULE_PY = '''\
"""Route registration generated by autoroute. Do not edit."""

{% for module in modules %}
import {{ module.name }} as {{ module.alias }}
{% end %}
from {{ runtime_module }} import {{ runtime_names }}
{% if include_listing %}

ROUTES = (
{% for row in rows %}
    {{ row }},
{% end %}
)
{% end %}
{% if include_register %}


def register_service(config):
    """Attach every collected handler for the requested scopes to *config*."""
{% for group in groups %}
    # {{ group.label }}
    config.service(
        Scope({{ group.root }})
{% for entry in group.entries %}
        .route({{ entry.path }}, {{ entry.verb }}, {{ entry.target }})
{% end %}
    )
{% end %}
{% end %}
{% if include_listing %}


def list_routes():
    """Print and return every collected route as (scope, path, handler, verb) rows."""
    rows = list(ROUTES)
    print_routes(rows)
    return rows
{% end %}
'''

TEMPLATES = {
    MODULE_TEMPLATE: ROUTES_MODULE_PY,
}
