"""任务查询投影测试

测试内容：
1. 按状态分组，组内保持输入顺序
2. 只有 running / pending 使用进度文本
3. summary[app_id][version_id] 摘要
4. 进度快照只包含在途任务
"""

from datetime import UTC, datetime, timedelta

from ipaharbor.core.models import TaskErrorKind, TaskStatus
from ipaharbor.core.projection import (
    build_progress_snapshots,
    group_tasks_with_progress,
    to_task_view,
)

LINE = "downloading  42% |...| (10/24 MB, 1.2 MB/s)"


class TestGroupTasks:
    def test_groups_by_status(self, make_task):
        running = make_task("1", "a", status=TaskStatus.RUNNING)
        pending = make_task("2", "a")
        completed = make_task("3", "a", status=TaskStatus.COMPLETED, progress=100)
        failed = make_task(
            "4",
            "a",
            status=TaskStatus.FAILED,
            error="x",
            error_kind=TaskErrorKind.GENERAL_ERROR,
        )

        view = group_tasks_with_progress([running, pending, completed, failed], {})

        assert [t.task_id for t in view.running] == [running.task_id]
        assert [t.task_id for t in view.pending] == [pending.task_id]
        assert [t.task_id for t in view.completed] == [completed.task_id]
        assert [t.task_id for t in view.failed] == [failed.task_id]
        assert view.failed[0].error_kind == TaskErrorKind.GENERAL_ERROR

    def test_keeps_input_order_within_group(self, make_task):
        base = datetime.now(UTC)
        newer = make_task("1", "a", created_at=base + timedelta(seconds=1))
        older = make_task("1", "b", created_at=base)
        view = group_tasks_with_progress([newer, older], {})
        assert [t.version_id for t in view.pending] == ["a", "b"]

    def test_running_uses_progress_text(self, make_task):
        task = make_task(status=TaskStatus.RUNNING)
        view = group_tasks_with_progress([task], {task.task_id: LINE})
        assert view.running[0].progress.percentage == 42
        assert view.running[0].progress.download_speed == "1.2 MB/s"

    def test_failed_ignores_stale_progress_text(self, make_task):
        task = make_task(status=TaskStatus.FAILED)
        view = group_tasks_with_progress([task], {task.task_id: LINE})
        assert view.failed[0].progress.percentage == 0
        assert view.failed[0].progress.size_progress == "waiting..."

    def test_completed_is_full(self, make_task):
        task = make_task(status=TaskStatus.COMPLETED)
        view = group_tasks_with_progress([task], {})
        assert view.completed[0].progress.percentage == 100

    def test_summary(self, make_task):
        first = make_task("1", "a", status=TaskStatus.RUNNING)
        second = make_task("1", "b")
        third = make_task("2", "a", status=TaskStatus.COMPLETED)
        view = group_tasks_with_progress(
            [first, second, third], {first.task_id: LINE}
        )

        assert set(view.summary) == {"1", "2"}
        assert set(view.summary["1"]) == {"a", "b"}
        entry = view.summary["1"]["a"]
        assert entry.task_id == first.task_id
        assert entry.percentage == 42
        assert entry.status == TaskStatus.RUNNING
        assert view.summary["2"]["a"].percentage == 100

    def test_view_hides_process_id(self, make_task):
        task = make_task(status=TaskStatus.RUNNING, process_id=4242)
        dumped = to_task_view(task).model_dump()
        assert "process_id" not in dumped


class TestProgressSnapshots:
    def test_only_in_flight_tasks(self, make_task):
        running = make_task("1", "a", status=TaskStatus.RUNNING)
        pending = make_task("2", "a")
        done = make_task("3", "a", status=TaskStatus.COMPLETED)

        snapshots = build_progress_snapshots([running, pending, done], {running.task_id: LINE})

        assert [s.task_id for s in snapshots] == [running.task_id, pending.task_id]
        assert snapshots[0].progress_text == LINE
        assert snapshots[1].progress_text == "waiting..."
