"""
Step/Group Organizer Module

This module holds the client-side state of arranging placeholders into steps.
The state is immutable: every operation is a pure function that takes an
OrganizerState and returns the next one, so a host UI only dispatches actions
and renders snapshots.

State:
    - pool: placeholders not yet assigned to a step, in display order
    - steps: the ordered steps built so far
    - selected: full_tag_names currently marked for a bulk action
    - initial_pool: the pool restored by reset()

Selection rules:
    - Members of a dotted group (`Company.Name`, `Company.Logo`) are selected
      together; the operator-facing count treats a group as one item.
    - A step counts as selected when every one of its fields is selected.

Usage:
    >>> state = create_state(placeholders)
    >>> state = toggle_select(state, "Company.Name", as_group=True)
    >>> state = move_right(state)
    >>> state.steps[0].title
    'Step 1'

    Or through the action dispatcher:
    >>> state = apply_action(state, {"type": "set_step_title", "step_index": 0, "title": "Company"})
"""

import logging
from collections import deque
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from docform.config import FormSettings
from docform.utils.helpers import unescape_unicode
from .classification import visible_placeholders
from .constants import GROUP_SEPARATOR, STEP_TITLE_TEMPLATE
from .models import Placeholder, Step

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 200


class OrganizerState(BaseModel):
    """Snapshot of the pool, the steps and the current selection."""
    model_config = ConfigDict(frozen=True)

    pool: List[Placeholder] = Field(default_factory=list)
    steps: List[Step] = Field(default_factory=list)
    selected: FrozenSet[str] = Field(default_factory=frozenset)
    initial_pool: List[Placeholder] = Field(default_factory=list)

    @property
    def selected_pool_count(self) -> int:
        """Ungrouped selected pool items plus distinct selected group prefixes."""
        groups = set()
        count = 0
        for placeholder in self.pool:
            if placeholder.full_tag_name not in self.selected:
                continue
            if placeholder.group_name is None:
                count += 1
            else:
                groups.add(placeholder.group_name)
        return count + len(groups)

    @property
    def selected_step_count(self) -> int:
        """Number of steps whose every field is selected."""
        return sum(
            1 for step in self.steps
            if step.fields and all(field.full_tag_name in self.selected for field in step.fields)
        )

    @property
    def can_move_right(self) -> bool:
        return self.selected_pool_count > 0

    @property
    def can_move_left(self) -> bool:
        return self.selected_step_count > 0

    @property
    def group_names(self) -> List[str]:
        """Distinct group prefixes present in the pool, in pool order."""
        names: List[str] = []
        for placeholder in self.pool:
            group = placeholder.group_name
            if group is not None and group not in names:
                names.append(group)
        return names

    def group_members(self, group_name: str) -> List[Placeholder]:
        prefix = f"{group_name}{GROUP_SEPARATOR}"
        return [p for p in self.pool if p.full_tag_name.startswith(prefix)]

    def is_group_selected(self, group_name: str) -> bool:
        members = self.group_members(group_name)
        return bool(members) and all(p.full_tag_name in self.selected for p in members)

    def find_field(self, tag: str) -> Optional[Tuple[int, int]]:
        """Returns (step_index, field_index) of the step field with this tag."""
        for step_index, step in enumerate(self.steps):
            for field_index, field in enumerate(step.fields):
                if field.full_tag_name == tag:
                    return step_index, field_index
        return None


def create_state(placeholders: Iterable[Placeholder],
                 settings: Optional[FormSettings] = None) -> OrganizerState:
    """
    Seeds an organizer with its starting pool.

    Args:
        placeholders: Classified placeholders for the upload
        settings: When given, generic and master-folder placeholders are left out
    """
    pool = list(placeholders)
    if settings is not None:
        pool = visible_placeholders(pool, settings)
    return OrganizerState(pool=pool, initial_pool=pool)


def _with_selection(state: OrganizerState, selected) -> OrganizerState:
    return state.model_copy(update={"selected": frozenset(selected)})


def _replace_field(state: OrganizerState, tag: str,
                   change: Callable[[Placeholder], Placeholder]) -> OrganizerState:
    location = state.find_field(tag)
    if location is None:
        return state
    step_index, field_index = location

    step = state.steps[step_index]
    fields = list(step.fields)
    fields[field_index] = change(fields[field_index])
    steps = list(state.steps)
    steps[step_index] = step.model_copy(update={"fields": fields})
    return state.model_copy(update={"steps": steps})


def toggle_select(state: OrganizerState, tag: str, as_group: bool = False) -> OrganizerState:
    """
    Flips the selection of one tag, or of its whole group.

    With as_group, every pool item sharing the tag's prefix ends up in the
    same state: the opposite of the tag's current state, or, when tag names
    the group itself, the opposite of "all members selected".
    """
    selected = set(state.selected)
    group_name = tag.split(GROUP_SEPARATOR, 1)[0]
    members = [p.full_tag_name for p in state.group_members(group_name)] if as_group else []
    # Plain toggle, or a group toggle on a tag that belongs to no group
    if not members:
        selected.symmetric_difference_update({tag})
        return _with_selection(state, selected)

    if tag in members:
        should_select = tag not in selected
    else:
        should_select = not state.is_group_selected(group_name)

    if should_select:
        selected.update(members)
    else:
        selected.difference_update(members)
    return _with_selection(state, selected)


def toggle_group_checkbox(state: OrganizerState, group_name: str) -> OrganizerState:
    """Selects every member of the group, or deselects all when all are selected."""
    members = [p.full_tag_name for p in state.group_members(group_name)]
    if not members:
        return state

    selected = set(state.selected)
    if any(tag not in selected for tag in members):
        selected.update(members)
    else:
        selected.difference_update(members)
    return _with_selection(state, selected)


def toggle_step(state: OrganizerState, step_index: int) -> OrganizerState:
    """Selects every field of a step, or deselects all when all are selected."""
    if not 0 <= step_index < len(state.steps):
        return state

    tags = [field.full_tag_name for field in state.steps[step_index].fields]
    selected = set(state.selected)
    if all(tag in selected for tag in tags):
        selected.difference_update(tags)
    else:
        selected.update(tags)
    return _with_selection(state, selected)


def move_right(state: OrganizerState) -> OrganizerState:
    """
    Moves the selected pool placeholders into a new step.

    The step is titled "Step {n+1}", keeps pool order, and is marked as a
    group step when any moved tag is dotted. The selection is cleared.
    """
    moving = [p for p in state.pool if p.full_tag_name in state.selected]
    if not moving:
        return state

    fields = [p.model_copy(update={"order": index}) for index, p in enumerate(moving)]
    step = Step(
        title=STEP_TITLE_TEMPLATE.format(number=len(state.steps) + 1),
        fields=fields,
        is_group=any(GROUP_SEPARATOR in p.full_tag_name for p in moving),
    )
    pool = [p for p in state.pool if p.full_tag_name not in state.selected]
    logger.debug(f"Created '{step.title}' with {len(fields)} fields")
    return state.model_copy(update={
        "pool": pool,
        "steps": list(state.steps) + [step],
        "selected": frozenset(),
    })


def move_left(state: OrganizerState) -> OrganizerState:
    """
    Returns selected step fields to the end of the pool.

    Steps left without fields are dropped. The selection is cleared.
    """
    if not state.selected:
        return state

    returned: List[Placeholder] = []
    steps: List[Step] = []
    for step in state.steps:
        keep = [f for f in step.fields if f.full_tag_name not in state.selected]
        returned.extend(f for f in step.fields if f.full_tag_name in state.selected)
        if keep:
            steps.append(step.model_copy(update={"fields": keep}))

    return state.model_copy(update={
        "pool": list(state.pool) + returned,
        "steps": steps,
        "selected": frozenset(),
    })


def reorder_within_step(state: OrganizerState, step_index: int, from_index: int, to_index: int,
                        to_step_index: Optional[int] = None) -> OrganizerState:
    """
    Moves one field to a new position inside the same step and renumbers
    every field's order to its index. Moves across steps are ignored.
    """
    if to_step_index is not None and to_step_index != step_index:
        return state
    if not 0 <= step_index < len(state.steps):
        return state

    step = state.steps[step_index]
    fields = list(step.fields)
    if not (0 <= from_index < len(fields) and 0 <= to_index < len(fields)):
        return state

    moved = fields.pop(from_index)
    fields.insert(to_index, moved)
    fields = [field.model_copy(update={"order": index}) for index, field in enumerate(fields)]

    steps = list(state.steps)
    steps[step_index] = step.model_copy(update={"fields": fields})
    return state.model_copy(update={"steps": steps})


def set_step_title(state: OrganizerState, step_index: int, title: str) -> OrganizerState:
    if not 0 <= step_index < len(state.steps):
        return state
    steps = list(state.steps)
    steps[step_index] = steps[step_index].model_copy(update={"title": title})
    return state.model_copy(update={"steps": steps})


def set_field_type(state: OrganizerState, tag: str, field_type_id: str) -> OrganizerState:
    """Assigns a value type to a step field; the declared type name is re-resolved at compile time."""
    return _replace_field(
        state, tag, lambda field: field.model_copy(update={"field_type_id": field_type_id or "", "type": None})
    )


def add_option(state: OrganizerState, tag: str, raw_value: str) -> OrganizerState:
    """
    Appends an option to a step field's option list.

    \\uXXXX escapes in raw_value are decoded first. Empty input is ignored;
    repeated values are allowed.
    """
    if not raw_value or not raw_value.strip():
        return state
    value = unescape_unicode(raw_value)
    return _replace_field(
        state, tag, lambda field: field.model_copy(update={"options": list(field.options) + [value]})
    )


def remove_option(state: OrganizerState, tag: str, value: str) -> OrganizerState:
    """Removes every occurrence of value from a step field's option list."""
    return _replace_field(
        state, tag,
        lambda field: field.model_copy(update={"options": [o for o in field.options if o != value]}),
    )


def reset(state: OrganizerState) -> OrganizerState:
    """Restores the initial pool and clears the steps and the selection."""
    return OrganizerState(pool=list(state.initial_pool), initial_pool=list(state.initial_pool))


ACTIONS: Dict[str, Callable[..., OrganizerState]] = {
    "toggle_select": toggle_select,
    "toggle_group_checkbox": toggle_group_checkbox,
    "toggle_step": toggle_step,
    "move_right": move_right,
    "move_left": move_left,
    "reorder_within_step": reorder_within_step,
    "set_step_title": set_step_title,
    "set_field_type": set_field_type,
    "add_option": add_option,
    "remove_option": remove_option,
    "reset": reset,
}


def apply_action(state: OrganizerState, action: Mapping[str, Any]) -> OrganizerState:
    """
    Applies one action mapping of the form {"type": name, **parameters}.

    Raises:
        ValueError: If the action type is unknown or its parameters do not fit
    """
    params = dict(action)
    action_type = params.pop("type", None)
    handler = ACTIONS.get(action_type)
    if handler is None:
        raise ValueError(f"Unknown organizer action: {action_type!r}")
    try:
        return handler(state, **params)
    except TypeError as e:
        raise ValueError(f"Invalid parameters for '{action_type}': {e}") from e


class StepOrganizer:
    """
    Holds the organizer state for one upload session.

    Actions are applied strictly in the order they are dispatched; each
    action sees the state produced by the one before it. The most recent
    successful actions are kept in history for debugging.
    """

    def __init__(self, placeholders: Iterable[Placeholder], settings: Optional[FormSettings] = None,
                 history_limit: int = HISTORY_LIMIT):
        self.state = create_state(placeholders, settings)
        self.history: deque = deque(maxlen=history_limit)

    def dispatch(self, action: Mapping[str, Any]) -> OrganizerState:
        self.state = apply_action(self.state, action)
        self.history.append(dict(action))
        return self.state

    def reset(self) -> OrganizerState:
        return self.dispatch({"type": "reset"})

    @property
    def steps(self) -> List[Step]:
        return self.state.steps

    @property
    def pool(self) -> List[Placeholder]:
        return self.state.pool
