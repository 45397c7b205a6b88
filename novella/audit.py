"""Static story audit: walk every scene reachable from the start.

Conditions are ignored, every choice target is followed. Reports scenes with
no choices (dead ends), targets pointing at missing scenes or sources, and
targets with no scene key.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Literal

from pydantic import BaseModel, Field

from novella.content import ContentResolver
from novella.errors import MalformedChoice, SceneError
from novella.models import LocationRef
from novella.transitions import parse_target

logger = logging.getLogger(__name__)

FindingKind = Literal[
    "dead_end",
    "missing_scene",
    "unavailable_source",
    "malformed_source",
    "malformed_target",
]

_ERROR_KINDS = {
    "scene_not_found": "missing_scene",
    "source_unavailable": "unavailable_source",
    "malformed_source": "malformed_source",
}


class Finding(BaseModel):
    kind: FindingKind
    location: LocationRef
    message: str
    choice: int | None = None  # index of the offending choice, if any

    @property
    def is_error(self) -> bool:
        return self.kind != "dead_end"


class AuditReport(BaseModel):
    start: LocationRef
    reachable: list[LocationRef] = Field(default_factory=list)
    findings: list[Finding] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(f.is_error for f in self.findings)

    def summary(self) -> str:
        lines = [
            f"Start: {self.start}",
            f"Reachable scenes: {len(self.reachable)}",
        ]
        if not self.findings:
            lines.append("No problems found.")
        for f in self.findings:
            where = f"{f.location}" if f.choice is None else f"{f.location} choice {f.choice + 1}"
            lines.append(f"  - [{f.kind}] {where}: {f.message}")
        return "\n".join(lines)


async def audit_story(resolver: ContentResolver, start: LocationRef) -> AuditReport:
    report = AuditReport(start=start)
    seen: set[LocationRef] = {start}
    queue: deque[tuple[LocationRef, LocationRef | None, int | None]] = deque(
        [(start, None, None)]
    )

    while queue:
        ref, origin, choice_index = queue.popleft()
        try:
            definition = await resolver.resolve(ref)
        except SceneError as e:
            report.findings.append(
                Finding(
                    kind=_ERROR_KINDS[e.kind],
                    location=origin or ref,
                    choice=choice_index,
                    message=str(e),
                )
            )
            continue

        report.reachable.append(ref)
        scene = definition.scenes[ref.scene_key]
        if not scene.choices:
            report.findings.append(
                Finding(kind="dead_end", location=ref, message="Scene has no choices")
            )
        for index, choice in enumerate(scene.choices):
            try:
                target = parse_target(choice.target, ref)
            except MalformedChoice as e:
                report.findings.append(
                    Finding(kind="malformed_target", location=ref, choice=index, message=str(e))
                )
                continue
            if target not in seen:
                seen.add(target)
                queue.append((target, ref, index))

    logger.info(
        "audited %d scenes from %s: %d findings",
        len(report.reachable), start, len(report.findings),
    )
    return report
