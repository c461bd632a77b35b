"""LangGraph workflow for one turn of the travel assistant chat."""

import logging
from typing import Any, Callable, Dict
from langgraph.graph import StateGraph, END

from .agent import TravelAgent
from .form import IncompleteTripError, apply_agent_updates, finalize_trip, form_to_snapshot
from .state import TripChatState


def make_reconcile_node(agent: TravelAgent) -> Callable[[TripChatState], Dict[str, Any]]:
    def reconcile_node(state: TripChatState) -> Dict[str, Any]:
        """Asks the agent for the next question and patch."""
        logging.info("--- Running Node: reconcile_node ---")
        response = agent.reply(list(state['messages']), form_to_snapshot(state['form']))
        return {
            "messages": [{"role": "assistant", "content": response["question"]}],
            "pending_updates": response.get("formUpdates"),
            "done": response.get("done", False),
            "error_message": None,
        }
    return reconcile_node


def apply_updates_node(state: TripChatState) -> Dict[str, Any]:
    """Merges the pending patch into the live form."""
    logging.info("--- Running Node: apply_updates_node ---")
    updates = state.get('pending_updates')
    if not updates:
        return {}
    return {"form": apply_agent_updates(state['form'], updates), "pending_updates": None}


def finalize_node(state: TripChatState) -> Dict[str, Any]:
    """Copies the form out as a trip; an incomplete form keeps the chat open."""
    logging.info("--- Running Node: finalize_node ---")
    try:
        trip = finalize_trip(state['form'], state.get('trip_id'), state.get('created_at'))
    except IncompleteTripError as e:
        logging.warning(f"Finalization refused: {e}")
        return {
            "messages": [{"role": "assistant", "content": f"The record is incomplete. {e}"}],
            "done": False,
            "error_message": str(e),
        }
    logging.info(f"Trip '{trip['id']}' finalized with {len(trip['days'])} days.")
    return {"trip": trip}


def route_after_updates(state: TripChatState) -> str:
    """Completion is reached only through an explicit done flag."""
    if state.get('done'):
        logging.info("Conditional Edge: Routing to finalize.")
        return "finalize"
    return "end"


def create_graph(agent: TravelAgent) -> StateGraph:
    """Creates and returns the LangGraph workflow."""
    workflow = StateGraph(TripChatState)

    # Add nodes
    workflow.add_node("reconcile", make_reconcile_node(agent))
    workflow.add_node("apply_updates", apply_updates_node)
    workflow.add_node("finalize", finalize_node)

    # Define edges
    workflow.set_entry_point("reconcile")
    workflow.add_edge("reconcile", "apply_updates")
    workflow.add_conditional_edges(
        "apply_updates",
        route_after_updates,
        {
            "finalize": "finalize",
            "end": END
        }
    )
    workflow.add_edge("finalize", END)

    return workflow


def compile_graph(agent: TravelAgent) -> Any:
    """Compiles and returns the LangGraph application."""
    workflow = create_graph(agent)
    try:
        app = workflow.compile()
        logging.info("Travel assistant LangGraph compiled successfully.")
        return app
    except Exception as compile_error:
        logging.error(f"Failed to compile LangGraph: {compile_error}", exc_info=True)
        return None
