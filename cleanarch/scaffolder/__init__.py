"""cleanarch scaffolder -- plans and renders the files a request produces.

Templates live in ``templates/`` next to this module; a project can point at
its own tree through ``templates.localPath`` in ``.cleanarch.yml``.

Quick usage::

    from cleanarch.scaffolder import JinjaTemplateProvider, plan_request

    provider = JinjaTemplateProvider()
    plan = plan_request(request, settings)
    for planned in plan.source_files:
        print(provider.render(planned.template_id, plan.bindings))
"""

from cleanarch.scaffolder.planner import GenerationPlan, PlannedFile, plan_request
from cleanarch.scaffolder.templates import JinjaTemplateProvider, TemplateProvider

__all__ = [
    "GenerationPlan",
    "JinjaTemplateProvider",
    "PlannedFile",
    "TemplateProvider",
    "plan_request",
]
