# triviakit/domain/media.py
from __future__ import annotations

from types import MappingProxyType
from typing import Annotated, Any, Dict, Iterator, List, Literal, Mapping, Optional, Union

from pydantic import ConfigDict, Field

from triviakit.domain.common.types import ActivityId, MediaFit, MediaKind, WireModel


class ActivityBase(WireModel):
    model_config = ConfigDict(frozen=True)

    id: ActivityId
    parent_id: Optional[ActivityId] = None  # top-level ancestor, unset on roots


class MediaActivity(ActivityBase):
    type: MediaKind
    file: str
    fit: Optional[MediaFit] = None
    auto_play: bool = True
    # seconds; one mark or several
    pause_at: Optional[Union[int, float, List[Union[int, float]]]] = None


class RevealActivity(ActivityBase):
    type: Literal["reveal"] = "reveal"
    question: MediaActivity
    answer: MediaActivity


class FourChoiceActivity(ActivityBase):
    type: Literal["4 choice"] = "4 choice"
    a: Activity
    b: Activity
    c: Activity
    d: Activity


class MediaListActivity(ActivityBase):
    type: Literal["media list"] = "media list"
    items: List[MediaActivity] = Field(default_factory=list)


Activity = Annotated[
    Union[MediaActivity, RevealActivity, FourChoiceActivity, MediaListActivity],
    Field(discriminator="type"),
]

FourChoiceActivity.model_rebuild()


def child_activities(activity: Any) -> List[Any]:
    if isinstance(activity, RevealActivity):
        return [activity.question, activity.answer]
    if isinstance(activity, FourChoiceActivity):
        return [activity.a, activity.b, activity.c, activity.d]
    if isinstance(activity, MediaListActivity):
        return list(activity.items)
    return []


class Catalog:
    """
    Immutable activity catalog.

    ``activities`` holds the top-level entries (what clients receive).
    ``nodes`` is a flat id index over every node, nested ones included, so
    lookups never have to walk the tree. A nested id never shadows a root id.
    """

    def __init__(self, activities: Optional[Mapping[ActivityId, Any]] = None) -> None:
        roots: Dict[ActivityId, Any] = dict(activities or {})
        nodes: Dict[ActivityId, Any] = dict(roots)
        for root in roots.values():
            stack = child_activities(root)
            while stack:
                node = stack.pop()
                nodes.setdefault(node.id, node)
                stack.extend(child_activities(node))
        self._roots = MappingProxyType(roots)
        self._nodes = MappingProxyType(nodes)

    @property
    def activities(self) -> Mapping[ActivityId, Any]:
        return self._roots

    @property
    def nodes(self) -> Mapping[ActivityId, Any]:
        return self._nodes

    def get(self, activity_id: ActivityId) -> Optional[Any]:
        return self._roots.get(activity_id)

    def node(self, activity_id: ActivityId) -> Optional[Any]:
        return self._nodes.get(activity_id)

    def root_of(self, activity_id: ActivityId) -> Optional[Any]:
        node = self._nodes.get(activity_id)
        if node is None:
            return None
        if node.parent_id is None:
            return node
        return self._roots.get(node.parent_id)

    def to_wire(self) -> Dict[ActivityId, Dict[str, Any]]:
        return {aid: a.to_wire() for aid, a in self._roots.items()}

    def __contains__(self, activity_id: object) -> bool:
        return activity_id in self._nodes

    def __iter__(self) -> Iterator[ActivityId]:
        return iter(self._roots)

    def __len__(self) -> int:
        return len(self._roots)
