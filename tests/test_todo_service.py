import uuid
from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from questlog.core.exceptions import ConflictError, ErrorKind, NotFoundError, ValidationError
from questlog.domain.enums import Difficulty, RepeatFrequency, TimeBlock


PAST_SCHEDULES = [
    ({"scheduled_date": date(2024, 12, 2)}, ErrorKind.DATE_IN_PAST),
    (
        {"deadline": datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)},
        ErrorKind.INVALID_TEMPORAL_ORDERING,
    ),
]


def test_add_and_get(todo_service, make_todo):
    todo = todo_service.add(make_todo())
    assert todo_service.get_by_id(todo.id) == todo


def test_add_duplicate_id_conflicts(todo_service, make_todo):
    todo = todo_service.add(make_todo())
    with pytest.raises(ConflictError) as exc:
        todo_service.add(todo)
    assert exc.value.kind is ErrorKind.DUPLICATE_ID


@pytest.mark.parametrize("changes, kind", PAST_SCHEDULES)
def test_add_rejects_past_schedule(todo_service, make_todo, changes, kind):
    todo = replace(make_todo(), **changes)
    with pytest.raises(ValidationError) as exc:
        todo_service.add(todo)
    assert exc.value.kind is kind
    assert todo_service.get_by_id(todo.id) is None


def test_get_missing_returns_none(todo_service):
    assert todo_service.get_by_id(uuid.uuid4()) is None


class TestListing:
    def test_day_view(self, todo_service, make_todo, user):
        today = todo_service.add(make_todo())
        todo_service.add(make_todo(scheduled_date=date(2025, 1, 2)))
        items = todo_service.get_by_user_date_and_time_block(user.id, date(2025, 1, 1), TimeBlock.DAY)
        assert [t.id for t in items] == [today.id]

    def test_week_view_is_monday_based(self, todo_service, make_todo, user):
        # 2025-01-05 is a Sunday, 2025-01-06 the next Monday
        sunday = todo_service.add(make_todo(time_block=TimeBlock.WEEK, scheduled_date=date(2025, 1, 5)))
        todo_service.add(make_todo(time_block=TimeBlock.WEEK, scheduled_date=date(2025, 1, 6)))
        items = todo_service.get_by_user_date_and_time_block(user.id, date(2025, 1, 1), TimeBlock.WEEK)
        assert [t.id for t in items] == [sunday.id]

    def test_other_time_blocks_excluded(self, todo_service, make_todo, user):
        todo_service.add(make_todo(time_block=TimeBlock.MONTH))
        assert todo_service.get_by_user_date_and_time_block(user.id, date(2025, 1, 1), TimeBlock.DAY) == []

    def test_other_users_excluded(self, todo_service, make_todo):
        todo_service.add(make_todo())
        assert todo_service.get_by_user_date_and_time_block(uuid.uuid4(), date(2025, 1, 1), TimeBlock.DAY) == []


class TestUpdate:
    def test_update_fields(self, todo_service, make_todo, clock):
        todo = todo_service.add(make_todo())
        todo_service.update(todo.with_changes(clock=clock, description="Water the garden"))
        assert todo_service.get_by_id(todo.id).description == "Water the garden"

    def test_update_missing_raises_not_found(self, todo_service, make_todo):
        with pytest.raises(NotFoundError):
            todo_service.update(make_todo())

    def test_completion_awards_difficulty_as_experience(self, todo_service, user_service, make_todo, clock, user):
        first = todo_service.add(make_todo(difficulty=Difficulty.EASY))
        second = todo_service.add(make_todo(difficulty=Difficulty.EASY))

        todo_service.update(first.with_changes(clock=clock, completion_status=True))
        assert user_service.get_by_id(user.id).experience == 5
        todo_service.update(second.with_changes(clock=clock, completion_status=True))
        assert user_service.get_by_id(user.id).experience == 10

    def test_nightmare_from_zero(self, todo_service, user_service, make_todo, clock, user):
        todo = todo_service.add(make_todo(difficulty=Difficulty.NIGHTMARE))
        todo_service.update(todo.with_changes(clock=clock, completion_status=True))
        assert user_service.get_by_id(user.id).experience == 20

    def test_non_completing_update_awards_nothing(self, todo_service, user_service, make_todo, clock, user):
        todo = todo_service.add(make_todo(difficulty=Difficulty.HARD))
        todo_service.update(todo.with_changes(clock=clock, description="Changed"))
        assert user_service.get_by_id(user.id).experience == 0

    def test_completed_item_is_frozen(self, todo_service, user_service, make_todo, clock, user):
        todo = todo_service.add(make_todo())
        completed = todo_service.update(todo.with_changes(clock=clock, completion_status=True))

        with pytest.raises(ConflictError) as exc:
            todo_service.update(completed.with_changes(clock=clock, completion_status=False))
        assert exc.value.kind is ErrorKind.COMPLETED_ITEM
        assert todo_service.get_by_id(todo.id).completion_status is True
        assert user_service.get_by_id(user.id).experience == 5

    def test_losing_completion_race_rolls_back_award(
        self, todo_service, user_service, make_todo, clock, user, monkeypatch
    ):
        todo = todo_service.add(make_todo(difficulty=Difficulty.EASY))
        todo_service.update(todo.with_changes(clock=clock, completion_status=True))

        # a second request that read the row before the first one committed
        monkeypatch.setattr(todo_service.uow.todos, "get_by_id", lambda todo_id: todo)
        with pytest.raises(ConflictError):
            todo_service.update(todo.with_changes(clock=clock, completion_status=True))
        monkeypatch.undo()

        assert user_service.get_by_id(user.id).experience == 5

    @pytest.mark.parametrize("changes, kind", PAST_SCHEDULES)
    def test_update_rejects_past_schedule(self, todo_service, make_todo, changes, kind):
        todo = todo_service.add(make_todo())
        with pytest.raises(ValidationError) as exc:
            todo_service.update(replace(todo, **changes))
        assert exc.value.kind is kind
        assert todo_service.get_by_id(todo.id) == todo

    def test_unchanged_past_date_still_editable(self, todo_service, make_todo, clock):
        todo = todo_service.add(make_todo())
        clock.advance(days=5)
        todo_service.update(replace(todo, description="Late edit"))
        assert todo_service.get_by_id(todo.id).description == "Late edit"

    def test_award_increments_stored_experience(
        self, todo_service, user_service, make_todo, clock, user, monkeypatch
    ):
        first = todo_service.add(make_todo(difficulty=Difficulty.EASY))
        second = todo_service.add(make_todo(difficulty=Difficulty.HARD))
        todo_service.update(first.with_changes(clock=clock, completion_status=True))

        # a user snapshot taken before the first award
        monkeypatch.setattr(todo_service.uow.users, "get_by_id", lambda user_id: user)
        todo_service.update(second.with_changes(clock=clock, completion_status=True))
        monkeypatch.undo()

        assert user_service.get_by_id(user.id).experience == 20

    def test_owner_change_rejected(self, todo_service, make_todo):
        todo = todo_service.add(make_todo())
        with pytest.raises(ValidationError) as exc:
            todo_service.update(replace(todo, user_id=uuid.uuid4()))
        assert exc.value.kind is ErrorKind.IMMUTABLE_FIELD

    def test_time_block_change_rejected(self, todo_service, make_todo):
        todo = todo_service.add(make_todo())
        with pytest.raises(ValidationError):
            todo_service.update(replace(todo, time_block=TimeBlock.YEAR))

    def test_moved_flag_is_preserved(self, todo_service, make_todo, clock):
        todo = todo_service.add(make_todo(repeat_frequency=RepeatFrequency.DAILY))
        todo_service.advance_recurring(todo.user_id)

        todo_service.update(replace(todo, moved=False, description="Edited"))
        stored = todo_service.get_by_id(todo.id)
        assert stored.moved is True
        assert stored.description == "Edited"


class TestDelete:
    def test_delete(self, todo_service, make_todo):
        todo = todo_service.add(make_todo())
        todo_service.delete(todo.id)
        assert todo_service.get_by_id(todo.id) is None

    def test_delete_missing_raises_not_found(self, todo_service):
        with pytest.raises(NotFoundError):
            todo_service.delete(uuid.uuid4())


class TestAdvanceRecurring:
    def _by_parent(self, todo_service, user, on_date, block=TimeBlock.DAY):
        return todo_service.get_by_user_date_and_time_block(user.id, on_date, block)

    def test_daily_successor(self, todo_service, make_todo, user):
        original = todo_service.add(make_todo(repeat_frequency=RepeatFrequency.DAILY))

        assert todo_service.advance_recurring(user.id) == 1

        successors = self._by_parent(todo_service, user, date(2025, 1, 2))
        assert len(successors) == 1
        successor = successors[0]
        assert successor.id != original.id
        assert successor.parent_id == original.id
        assert successor.description == original.description
        assert successor.difficulty is original.difficulty
        assert successor.category_id == original.category_id
        assert successor.repeat_frequency is RepeatFrequency.DAILY
        assert successor.completion_status is False
        assert successor.moved is False
        assert todo_service.get_by_id(original.id).moved is True

    def test_second_run_is_a_no_op(self, todo_service, make_todo, user):
        todo_service.add(make_todo(repeat_frequency=RepeatFrequency.DAILY))
        assert todo_service.advance_recurring(user.id) == 1
        assert todo_service.advance_recurring(user.id) == 0

    def test_non_repeating_and_future_items_ignored(self, todo_service, make_todo, user):
        todo_service.add(make_todo())
        todo_service.add(make_todo(repeat_frequency=RepeatFrequency.DAILY, scheduled_date=date(2025, 1, 3)))
        assert todo_service.advance_recurring(user.id) == 0

    def test_completed_items_still_recur(self, todo_service, make_todo, clock, user):
        todo = todo_service.add(make_todo(repeat_frequency=RepeatFrequency.WEEKLY))
        todo_service.update(todo.with_changes(clock=clock, completion_status=True))
        assert todo_service.advance_recurring(user.id) == 1
        assert len(self._by_parent(todo_service, user, date(2025, 1, 8))) == 1

    def test_overdue_items_skip_to_today_or_later(self, todo_service, make_todo, clock, user):
        todo_service.add(make_todo(time_block=TimeBlock.WEEK, repeat_frequency=RepeatFrequency.WEEKLY))
        clock.advance(days=9)  # 2025-01-10

        assert todo_service.advance_recurring(user.id) == 1
        successors = self._by_parent(todo_service, user, date(2025, 1, 15), TimeBlock.WEEK)
        assert [s.scheduled_date for s in successors] == [date(2025, 1, 15)]

    def test_monthly_clamps_to_month_end(self, todo_service, make_todo, clock, user):
        todo_service.add(make_todo(scheduled_date=date(2025, 1, 31), repeat_frequency=RepeatFrequency.MONTHLY))
        clock.advance(days=30)  # 2025-01-31

        assert todo_service.advance_recurring(user.id) == 1
        assert len(self._by_parent(todo_service, user, date(2025, 2, 28))) == 1

    def test_lineage_points_at_first_ancestor(self, todo_service, make_todo, clock, user):
        original = todo_service.add(make_todo(repeat_frequency=RepeatFrequency.DAILY))
        todo_service.advance_recurring(user.id)
        clock.advance(days=1)
        todo_service.advance_recurring(user.id)

        grandchild = self._by_parent(todo_service, user, date(2025, 1, 3))[0]
        assert grandchild.parent_id == original.id

    def test_deadline_shifted_with_date(self, todo_service, make_todo, user):
        todo_service.add(
            make_todo(
                repeat_frequency=RepeatFrequency.DAILY,
                deadline=datetime(2025, 1, 1, 18, 0, tzinfo=timezone.utc),
            )
        )
        todo_service.advance_recurring(user.id)

        successor = self._by_parent(todo_service, user, date(2025, 1, 2))[0]
        assert successor.deadline == datetime(2025, 1, 2, 18, 0, tzinfo=timezone.utc)

    def test_past_shifted_deadline_dropped(self, todo_service, make_todo, clock, user):
        todo_service.add(
            make_todo(
                repeat_frequency=RepeatFrequency.DAILY,
                deadline=datetime(2025, 1, 1, 18, 0, tzinfo=timezone.utc),
            )
        )
        clock.advance(days=1, hours=11)  # 2025-01-02 20:00

        todo_service.advance_recurring(user.id)
        successor = self._by_parent(todo_service, user, date(2025, 1, 2))[0]
        assert successor.deadline is None

    def test_completion_during_advance_is_kept(
        self, todo_service, user_service, make_todo, clock, user, monkeypatch
    ):
        todo = todo_service.add(make_todo(repeat_frequency=RepeatFrequency.DAILY))
        list_due = todo_service.uow.todos.list_repeating_due_for_user

        def list_then_complete(user_id, today):
            due = list_due(user_id, today)
            todo_service.update(todo.with_changes(clock=clock, completion_status=True))
            return due

        monkeypatch.setattr(todo_service.uow.todos, "list_repeating_due_for_user", list_then_complete)
        assert todo_service.advance_recurring(user.id) == 1
        monkeypatch.undo()

        stored = todo_service.get_by_id(todo.id)
        assert stored.completion_status is True
        assert stored.moved is True
        assert user_service.get_by_id(user.id).experience == 5
        with pytest.raises(ConflictError):
            todo_service.update(stored.with_changes(clock=clock, completion_status=False))

    @pytest.mark.parametrize("user_id", [None, "", uuid.UUID(int=0)])
    def test_empty_user_id_rejected(self, todo_service, user_id):
        with pytest.raises(ValidationError) as exc:
            todo_service.advance_recurring(user_id)
        assert exc.value.kind is ErrorKind.REQUIRED_REFERENCE_EMPTY

    def test_unknown_user_advances_nothing(self, todo_service):
        assert todo_service.advance_recurring(uuid.uuid4()) == 0
