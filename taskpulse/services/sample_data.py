from datetime import datetime, timedelta
from typing import List, Optional
from taskpulse.utils.dates import utcnow

SAMPLE_CATEGORY = "📚 Sample"

SAMPLE_TASKS = [
    {
        "title": "🎉 Welcome to your task list!",
        "description": "This is a sample task to help you get started. You can delete all sample tasks and create your own!",
        "priority": "high",
        "completed": False,
    },
    {
        "title": "✨ Create your first real task",
        "description": "Add your own tasks from the task list. Delete this sample when ready!",
        "priority": "medium",
        "completed": False,
    },
    {
        "title": "📊 Explore the analytics",
        "description": "Open the analytics view to see your productivity charts and insights",
        "priority": "medium",
        "completed": False,
    },
    {
        "title": "🏷️ Try organizing with categories",
        "description": "Add categories to your tasks to better organize them. You can edit or delete this example.",
        "priority": "low",
        "completed": False,
    },
    {
        "title": "📝 Edit tasks at any time",
        "description": "Any field of a task can be changed later. This is a sample you can delete.",
        "priority": "low",
        "completed": False,
    },
    {
        "title": "✅ This is a completed sample task",
        "description": "Completed tasks can be filtered and cleared in one go. Delete when ready!",
        "priority": "medium",
        "completed": True,
    },
    {
        "title": "🎯 High priority sample task",
        "description": "This shows how high priority tasks appear. Feel free to delete all sample data!",
        "priority": "high",
        "completed": True,
    },
    {
        "title": "🗑️ Delete sample tasks when ready",
        "description": "All these sample tasks can be deleted one by one or by clearing completed tasks.",
        "priority": "low",
        "completed": True,
    },
]


def build_sample_tasks(now: Optional[datetime] = None) -> List[dict]:
    """Sample records spread over the past few days.

    Task ``i`` of ``n`` is created ``n - i`` days ago; completed ones were
    completed ``(n - i - 1) * 12`` hours ago.
    """
    now = now or utcnow()
    total = len(SAMPLE_TASKS)
    records = []
    for index, sample in enumerate(SAMPLE_TASKS):
        created_at = now - timedelta(days=total - index)
        completed_at = now - timedelta(hours=(total - index - 1) * 12) if sample["completed"] else None
        records.append({
            **sample,
            "category": SAMPLE_CATEGORY,
            "created_at": created_at,
            "updated_at": completed_at or created_at,
            "completed_at": completed_at,
        })
    return records
