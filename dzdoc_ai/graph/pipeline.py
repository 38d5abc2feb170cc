import functools
from collections.abc import Callable

from langgraph.graph import END, StateGraph

from dzdoc_ai.audit.writer import AuditWriter
from dzdoc_ai.graph.nodes.finalize import finalize_node
from dzdoc_ai.graph.nodes.generation import generate_node
from dzdoc_ai.graph.nodes.safety import post_check_node, pre_check_node
from dzdoc_ai.graph.nodes.validation import (
    check_provider_node,
    resolve_skill_node,
    validate_input_node,
)
from dzdoc_ai.graph.state import PipelineState
from dzdoc_ai.services.generation import ProviderFallbackClient
from dzdoc_ai.skills.registry import SkillRegistry

# Gate order; each gate either continues to the next stage or jumps to finalize.
STAGES = (
    "check_provider",
    "resolve_skill",
    "validate_input",
    "pre_check",
    "generate",
    "post_check",
)


def _continue_or_finalize(next_stage: str) -> Callable[[PipelineState], str]:
    def route(state: PipelineState) -> str:
        return "finalize" if state.get("error") else next_stage

    return route


def build_pipeline(
    registry: SkillRegistry,
    generator: ProviderFallbackClient,
    audit_writer: AuditWriter,
):
    """Build and compile the skill execution graph."""

    nodes = {
        "check_provider": functools.partial(check_provider_node, generator=generator),
        "resolve_skill": functools.partial(resolve_skill_node, registry=registry),
        "validate_input": validate_input_node,
        "pre_check": pre_check_node,
        "generate": functools.partial(generate_node, generator=generator),
        "post_check": post_check_node,
        "finalize": functools.partial(finalize_node, audit_writer=audit_writer),
    }

    graph = StateGraph(PipelineState)
    for name, node in nodes.items():
        graph.add_node(name, node)

    graph.set_entry_point(STAGES[0])
    for stage, next_stage in zip(STAGES, STAGES[1:] + ("finalize",)):
        graph.add_conditional_edges(
            stage,
            _continue_or_finalize(next_stage),
            {next_stage: next_stage, "finalize": "finalize"},
        )
    graph.add_edge("finalize", END)

    return graph.compile()
