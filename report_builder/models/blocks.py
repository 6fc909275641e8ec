"""
Report column blocks.

A block is what the user drags into a column: a metric at a time range, or
the intent column. Blocks are immutable; the layout manager replaces the id
when it places one.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Union
from uuid import uuid4

from .metrics import MetricKey, MetricKind, TimeRange, parse_time_range, range_key, time_range_to_json


@dataclass(frozen=True)
class MetricBlock:
    """A metric column for one time range."""
    id: str
    metric: MetricKind
    time_range: TimeRange

    @property
    def key(self) -> MetricKey:
        return MetricKey(self.metric, self.time_range)


@dataclass(frozen=True)
class IntentBlock:
    """The intent/category column."""
    id: str


Block = Union[MetricBlock, IntentBlock]


def new_block_id(block: Block) -> str:
    """Fresh unique id, prefixed with something readable for logs."""
    if isinstance(block, MetricBlock):
        prefix = f"{block.metric.value}_{range_key(block.time_range)}"
    elif isinstance(block, IntentBlock):
        prefix = "intent"
    else:
        raise TypeError(f"Unknown block type: {type(block).__name__}")
    return f"{prefix}_{uuid4().hex[:12]}"


def block_to_dict(block: Block) -> Dict[str, Any]:
    """Serialize a block to the shape used by the API and the snapshot."""
    if isinstance(block, MetricBlock):
        return {
            "id": block.id,
            "type": "metric",
            "metric": block.metric.value,
            "timeRange": time_range_to_json(block.time_range),
        }
    if isinstance(block, IntentBlock):
        return {"id": block.id, "type": "intent"}
    raise TypeError(f"Unknown block type: {type(block).__name__}")


def block_from_dict(data: Dict[str, Any]) -> Block:
    """Parse a block dict; a missing id gets a generated one."""
    block_type = data.get("type")

    if block_type == "metric":
        metric = MetricKind(data["metric"])
        time_range = parse_time_range(data.get("timeRange", data.get("time_range")))
        block = MetricBlock(id=data.get("id") or "", metric=metric, time_range=time_range)
    elif block_type == "intent":
        block = IntentBlock(id=data.get("id") or "")
    else:
        raise ValueError(f"Unknown block type: {block_type!r}")

    if not block.id:
        block = replace(block, id=new_block_id(block))
    return block
