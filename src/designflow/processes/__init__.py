"""UX/UI design process definitions.

Importing this package registers every process with the registry.
"""

from designflow.processes import (  # noqa: F401
    analytics_heatmap,
    card_sorting,
    component_library,
    design_handoff,
    usability_testing,
    user_journey_mapping,
)
from designflow.processes.base import ProcessInputs
from designflow.processes.registry import (
    ProcessDefinition,
    get_process,
    list_processes,
    register_process,
)

__all__ = [
    "ProcessDefinition",
    "ProcessInputs",
    "get_process",
    "list_processes",
    "register_process",
]
