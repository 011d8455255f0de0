"""Task Hierarchy Manager — CRUD, tree assembly and reordering for tasks.

Tasks form a forest per transition. Within each sibling group
(transition_id, parent_task_id) order_index is kept dense and zero-based;
every delete and move renumbers the affected groups.

All writes of one operation go through a single commit. There is no row
locking or version check: two concurrent moves over the same group can both
read before either commits, and the last commit wins.

Usage:
    with Session(engine) as session:
        manager = TaskHierarchyManager(session)
        task = manager.create_task(transition_id, TaskCreate(...))
        manager.move_task(transition_id, task.id, TaskMove(position=0))
        tree = manager.get_task_tree(transition_id)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Sequence

from sqlalchemy import func, update
from sqlmodel import Session, select

from tracker.db.database import commit_or_rollback
from tracker.engines.audit import purge_audit
from tracker.engines.errors import NotFoundError, ValidationError
from tracker.engines.query import TaskListQuery, run_list_query
from tracker.engines.temporal import get_transition_or_raise, to_utc, utcnow, validate_due_date
from tracker.models.milestone import Milestone
from tracker.models.task import (
    TASK_SWEEPABLE_STATUSES,
    Task,
    TaskCreate,
    TaskMove,
    TaskPage,
    TaskRead,
    TaskTreeNode,
    TaskUpdate,
)

logger = logging.getLogger(__name__)

PARENT_MISMATCH = "Parent task must belong to the same transition"
MILESTONE_MISMATCH = "Milestone must belong to the same transition"
ANCESTOR_LOOP = "Task cannot be its own ancestor"

# Fields that cannot be cleared through update_task
_UPDATE_SKIP_NONE = frozenset({"title", "due_date", "priority", "status", "milestone_id", "parent_task_id"})


# === Pure helpers ===


def resolve_target_index(sibling_ids: Sequence[str], target: TaskMove) -> int:
    """Pick the insertion index in the destination group.

    before_task_id wins over after_task_id, which wins over position. An id
    that is not among the siblings falls back to the end of the list.
    """
    count = len(sibling_ids)
    if target.before_task_id:
        if target.before_task_id in sibling_ids:
            return list(sibling_ids).index(target.before_task_id)
        return count
    if target.after_task_id:
        if target.after_task_id in sibling_ids:
            return list(sibling_ids).index(target.after_task_id) + 1
        return count
    if target.position is not None:
        return max(0, min(target.position, count))
    return count


def assign_sequences(nodes: list[TaskTreeNode], prefix: str = "") -> None:
    """Label nodes depth-first with 1-based dotted positions ("2.1.3")."""
    for position, node in enumerate(nodes, start=1):
        node.sequence = f"{prefix}.{position}" if prefix else str(position)
        assign_sequences(node.children, node.sequence)


def build_task_tree(tasks: Sequence[Task]) -> list[TaskTreeNode]:
    """Nest a transition's tasks under their parents and number them.

    Each task is emitted at most once. Tasks that cannot be reached from a
    root (dangling parent reference or a parent cycle) are left out.
    """
    by_parent: dict[str | None, list[TaskTreeNode]] = defaultdict(list)
    for task in tasks:
        by_parent[task.parent_task_id].append(TaskTreeNode.model_validate(task))

    visited: set[str] = set()

    def _take(nodes: list[TaskTreeNode]) -> list[TaskTreeNode]:
        kept = []
        for node in sorted(nodes, key=lambda n: n.order_index):
            if node.id in visited:
                continue
            visited.add(node.id)
            kept.append(node)
        return kept

    roots = _take(by_parent.get(None, []))
    stack = list(roots)
    while stack:
        node = stack.pop()
        node.children = _take(by_parent.get(node.id, []))
        stack.extend(node.children)

    unreachable = len(tasks) - len(visited)
    if unreachable:
        logger.warning("Task tree: %d task(s) unreachable from a root were omitted", unreachable)

    assign_sequences(roots)
    return roots


# === Manager ===


class TaskHierarchyManager:
    """Task CRUD plus tree assembly and move/reorder, scoped to transitions."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # --- create / read ---

    def create_task(self, transition_id: str, data: TaskCreate) -> Task:
        """Create a task at the end of its sibling group.

        A task with the same (transition_id, title, due_date) is treated as a
        resubmission and returned as is.

        Raises:
            NotFoundError: Transition or milestone not found.
            ValidationError: Due date rules, or cross-transition parent/milestone.
        """
        transition = get_transition_or_raise(self.session, transition_id)
        due_date = validate_due_date(data.due_date, transition, entity="Task")

        existing = self.session.exec(
            select(Task)
            .where(Task.transition_id == transition_id)
            .where(Task.title == data.title)
            .where(Task.due_date == due_date)
        ).first()
        if existing is not None:
            logger.info("Task create deduplicated: returning existing task %s", existing.id)
            return existing

        parent_task_id = None
        if data.parent_task_id:
            parent_task_id = self._require_parent(data.parent_task_id, transition_id).id

        milestone_id = None
        if data.milestone_id:
            milestone_id = self._require_milestone(data.milestone_id, transition_id).id

        max_index = self.session.exec(
            select(func.max(Task.order_index))
            .where(Task.transition_id == transition_id)
            .where(self._parent_clause(parent_task_id))
        ).one()
        order_index = 0 if max_index is None else max_index + 1

        task = Task(
            title=data.title,
            description=data.description,
            due_date=due_date,
            priority=data.priority,
            status=data.status,
            transition_id=transition_id,
            milestone_id=milestone_id,
            parent_task_id=parent_task_id,
            order_index=order_index,
        )
        self.session.add(task)
        commit_or_rollback(self.session)
        self.session.refresh(task)
        logger.info("Created task %s in transition %s (order_index=%d)", task.id, transition_id, order_index)
        return task

    def list_tasks(self, transition_id: str, query: TaskListQuery, now: datetime | None = None) -> TaskPage:
        """Filtered, sorted, paginated tasks of one transition."""
        rows, pagination = run_list_query(self.session, Task, transition_id, query, now=now)
        return TaskPage(data=[TaskRead.model_validate(r) for r in rows], pagination=pagination)

    def get_task(self, task_id: str, transition_id: str | None = None) -> Task:
        """Fetch a task, optionally requiring it to belong to `transition_id`."""
        task = self.session.get(Task, task_id)
        if task is None or (transition_id is not None and task.transition_id != transition_id):
            raise NotFoundError("Task not found")
        return task

    def get_task_tree(self, transition_id: str) -> list[TaskTreeNode]:
        """All tasks of a transition nested under their parents with sequence labels."""
        tasks = self.session.exec(
            select(Task)
            .where(Task.transition_id == transition_id)
            .order_by(Task.parent_task_id.asc(), Task.order_index.asc())  # type: ignore[union-attr]
        ).all()
        return build_task_tree(tasks)

    # --- update / delete ---

    def update_task(self, task_id: str, patch: TaskUpdate) -> Task:
        """Update task fields in place.

        A new parent moves the task to the end of that parent's children and
        closes the gap in its old group, like move_task without a target.

        Raises:
            NotFoundError: Task or milestone not found.
            ValidationError: Due date rules, or invalid parent/milestone.
        """
        task = self.get_task(task_id)
        changes = patch.model_dump(exclude_unset=True)

        if patch.due_date is not None:
            transition = get_transition_or_raise(self.session, task.transition_id)
            changes["due_date"] = validate_due_date(patch.due_date, transition, entity="Task")

        if patch.milestone_id is not None:
            self._require_milestone(patch.milestone_id, task.transition_id)

        if patch.parent_task_id is not None:
            self._require_parent(patch.parent_task_id, task.transition_id)
            if self._would_loop(task.id, patch.parent_task_id):
                raise ValidationError(ANCESTOR_LOOP)
            if patch.parent_task_id != task.parent_task_id:
                self._renumber(self._siblings(task.transition_id, task.parent_task_id, exclude_id=task.id))
                changes["order_index"] = len(self._siblings(task.transition_id, patch.parent_task_id))

        for key, value in changes.items():
            if value is None and key in _UPDATE_SKIP_NONE:
                continue
            setattr(task, key, value)
        task.updated_at = utcnow()

        self.session.add(task)
        commit_or_rollback(self.session)
        self.session.refresh(task)
        return task

    def delete_task(self, task_id: str) -> dict:
        """Delete a task and close the gap it leaves in its sibling group.

        The deleted task's children are promoted into its place, keeping
        their relative order, so they stay reachable in the tree.
        """
        task = self.get_task(task_id)
        parent_id = task.parent_task_id

        siblings = self._siblings(task.transition_id, parent_id, exclude_id=task.id)
        children = self._siblings(task.transition_id, task.id)

        slot = sum(1 for s in siblings if s.order_index < task.order_index)
        regrouped = siblings[:slot] + children + siblings[slot:]
        for child in children:
            child.parent_task_id = parent_id
        self._renumber(regrouped)

        purge_audit(self.session, "task", [task.id])
        # Re-parented children must be written before the parent row goes
        self.session.flush()
        self.session.delete(task)
        commit_or_rollback(self.session)

        logger.info(
            "Deleted task %s (%d sibling(s) renumbered, %d child(ren) promoted)",
            task_id, len(siblings), len(children),
        )
        return {"message": "Task deleted"}

    # --- move ---

    def move_task(self, transition_id: str, task_id: str, target: TaskMove) -> Task:
        """Reposition a task within or across sibling groups.

        Opens a gap at the target index in the destination group, compacts
        the source group when the parent changes, and writes everything in
        one transaction.

        Raises:
            NotFoundError: Task not found in this transition.
            ValidationError: Parent missing, in another transition, or a descendant.
        """
        task = self.session.get(Task, task_id)
        if task is None or task.transition_id != transition_id:
            raise NotFoundError("Task not found")

        provided = target.model_fields_set
        old_parent = task.parent_task_id
        new_parent = target.parent_task_id if "parent_task_id" in provided else old_parent
        new_milestone = target.milestone_id if "milestone_id" in provided else task.milestone_id

        if new_parent is not None:
            self._require_parent(new_parent, transition_id)
            if self._would_loop(task.id, new_parent):
                raise ValidationError(ANCESTOR_LOOP)

        siblings = self._siblings(transition_id, new_parent, exclude_id=task.id)
        target_index = resolve_target_index([s.id for s in siblings], target)

        for position, sibling in enumerate(siblings):
            shifted = position + 1 if position >= target_index else position
            if sibling.order_index != shifted:
                sibling.order_index = shifted
                self.session.add(sibling)

        if old_parent != new_parent:
            self._renumber(self._siblings(transition_id, old_parent, exclude_id=task.id))

        task.parent_task_id = new_parent
        task.order_index = target_index
        task.milestone_id = new_milestone
        task.updated_at = utcnow()
        self.session.add(task)
        commit_or_rollback(self.session)
        self.session.refresh(task)

        logger.info(
            "Moved task %s to parent=%s index=%d",
            task.id, new_parent or "<root>", target_index,
        )
        return task

    # --- maintenance ---

    def sweep_overdue(self, now: datetime | None = None, commit: bool = True) -> dict:
        """Mark open tasks past their due date as OVERDUE. Idempotent."""
        now = to_utc(now) if now else utcnow()
        result = self.session.exec(  # type: ignore[call-overload]
            update(Task)
            .where(Task.due_date < now)
            .where(Task.status.in_(TASK_SWEEPABLE_STATUSES))  # type: ignore[attr-defined]
            .values(status="OVERDUE", updated_at=now)
        )
        if commit:
            commit_or_rollback(self.session)
        updated = result.rowcount or 0
        if updated:
            logger.info("Overdue sweep: %d task(s) marked OVERDUE", updated)
        return {"message": "Task statuses updated", "updated": updated}

    # --- internals ---

    @staticmethod
    def _parent_clause(parent_id: str | None):
        if parent_id is None:
            return Task.parent_task_id.is_(None)  # type: ignore[union-attr]
        return Task.parent_task_id == parent_id

    def _siblings(self, transition_id: str, parent_id: str | None, exclude_id: str | None = None) -> list[Task]:
        """Tasks of one sibling group ordered by order_index."""
        statement = (
            select(Task)
            .where(Task.transition_id == transition_id)
            .where(self._parent_clause(parent_id))
        )
        if exclude_id is not None:
            statement = statement.where(Task.id != exclude_id)
        statement = statement.order_by(Task.order_index.asc(), Task.created_at.asc())  # type: ignore[union-attr]
        return list(self.session.exec(statement).all())

    def _renumber(self, group: Sequence[Task]) -> None:
        """Stage order_index = 0..n-1 for rows whose index changes."""
        for position, task in enumerate(group):
            if task.order_index != position:
                task.order_index = position
            self.session.add(task)

    def _require_parent(self, parent_id: str, transition_id: str) -> Task:
        parent = self.session.get(Task, parent_id)
        if parent is None or parent.transition_id != transition_id:
            raise ValidationError(PARENT_MISMATCH)
        return parent

    def _require_milestone(self, milestone_id: str, transition_id: str) -> Milestone:
        milestone = self.session.get(Milestone, milestone_id)
        if milestone is None:
            raise NotFoundError("Milestone not found")
        if milestone.transition_id != transition_id:
            raise ValidationError(MILESTONE_MISMATCH)
        return milestone

    def _would_loop(self, task_id: str, new_parent_id: str) -> bool:
        """True if new_parent_id is task_id itself or one of its descendants."""
        seen: set[str] = set()
        current: str | None = new_parent_id
        while current is not None and current not in seen:
            if current == task_id:
                return True
            seen.add(current)
            node = self.session.get(Task, current)
            current = node.parent_task_id if node else None
        return False
