"""Prompt text for daily schedule generation.

Everything here is a pure function of the ScheduleContext so prompts can be
tested without the network.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pulse.services.planning.types import DailySummary, ScheduleContext, sort_by_priority

MAX_PROMPT_TASKS = 10
MAX_PROMPT_GOALS = 5

SCHEDULE_SYSTEM_INSTRUCTION = (
    "You are an expert productivity coach AI. Your role is to create personalized daily schedules "
    "that maximize the user's productivity while maintaining work-life balance.\n\n"
    "Key principles:\n"
    "- Always respect the user's preferred work hours\n"
    "- Schedule high-priority and cognitively demanding tasks during peak productivity hours\n"
    "- Include regular breaks to prevent burnout\n"
    "- Be realistic about time estimates\n"
    "- Consider task dependencies and energy levels throughout the day\n"
    "- Always respond with valid, parseable JSON matching the requested schema\n"
    "- Keep explanations concise but personalized"
)

SCHEDULE_RESPONSE_SCHEMA = """{
  "schedule": [
    {
      "time": "HH:MM",
      "duration": <minutes as number>,
      "task": "<task description>",
      "priority": "high" | "medium" | "low",
      "taskId": "<task id if matching a user task, or null>",
      "type": "work" | "break" | "meeting"
    }
  ],
  "explanation": "<2-3 sentence personalized explanation of why this schedule is optimized for the user>",
  "reasoning": {
    "focusHours": ["<hours where deep work is scheduled>"],
    "breakStrategy": "<brief explanation of break placement>",
    "prioritization": "<brief explanation of task order>"
  }
}"""


@dataclass(frozen=True)
class PerformanceSummary:
    days: int
    avg_focus_minutes: float
    avg_completion_rate: float
    avg_daily_rating: Optional[float]


def summarize_aggregates(aggregates: Sequence[DailySummary]) -> PerformanceSummary:
    """Mean focus time and completion rate; mean rating over rated days only."""
    count = len(aggregates)
    if count:
        avg_focus = sum(entry.total_focus_minutes or 0 for entry in aggregates) / count
        avg_completion = sum(entry.completion_rate or 0 for entry in aggregates) / count
    else:
        avg_focus = 0.0
        avg_completion = 0.0
    ratings = [entry.daily_rating for entry in aggregates if entry.daily_rating is not None]
    avg_rating = sum(ratings) / len(ratings) if ratings else None
    return PerformanceSummary(
        days=count,
        avg_focus_minutes=avg_focus,
        avg_completion_rate=avg_completion,
        avg_daily_rating=avg_rating,
    )


def format_hours(hours: Sequence[int], empty_label: str) -> str:
    if not hours:
        return empty_label
    return ", ".join(f"{hour}:00" for hour in hours)


def build_schedule_prompt(context: ScheduleContext) -> str:
    """Render the user prompt for one schedule generation."""
    profile = context.profile
    stats = summarize_aggregates(context.recent_aggregates)
    productive_hours = format_hours(profile.most_productive_hours, "Not yet determined")
    distraction_hours = format_hours(profile.common_distraction_times, "None identified")
    sorted_tasks = sort_by_priority(context.todays_tasks)

    lines: List[str] = [
        f"You are an AI productivity coach helping {context.user.name or 'the user'} plan their day.",
        "",
        "**User's Personalization Profile:**",
        f"- Optimal focus duration: {profile.optimal_focus_duration} minutes",
        f"- Preferred work hours: {profile.preferred_work_start_hour}:00 - {profile.preferred_work_end_hour}:00",
        f"- Preferred break duration: {profile.preferred_break_duration} minutes",
        f"- Most productive hours: {productive_hours}",
        f"- Common distraction times: {distraction_hours}",
        "",
        f"**Recent Performance (last {stats.days} days):**",
        f"- Average focus time: {round(stats.avg_focus_minutes)} minutes/day",
        f"- Average task completion rate: {stats.avg_completion_rate * 100:.1f}%",
        f"- Plan acceptance rate: {(profile.avg_plan_acceptance_rate or 0) * 100:.1f}%",
    ]
    if stats.avg_daily_rating is not None:
        lines.append(f"- Average daily satisfaction: {stats.avg_daily_rating:.1f}/10")

    lines += ["", f"**Today's Tasks ({len(sorted_tasks)} total):**"]
    lines += _task_lines(sorted_tasks)
    lines += ["", "**Active Goals:**"]
    lines += _goal_lines(context)
    lines += ["", "**Recurring Habits For Today:**"]
    lines += _habit_lines(context)

    focus = profile.optimal_focus_duration
    lines += [
        "",
        f"**Current Time:** {context.current_time}",
        "",
        "**Instructions:**",
        "1. Create a realistic schedule for today starting from the current time",
        f"2. Prioritize high-priority tasks during the user's most productive hours ({productive_hours})",
        f"3. Include breaks of {profile.preferred_break_duration} minutes after every {focus} minutes of work",
        f"4. Avoid scheduling demanding tasks during distraction-prone times ({distraction_hours})",
        f"5. Keep focus blocks around {focus} minutes",
        "6. Leave some buffer time between tasks",
        "7. Consider task due dates when prioritizing",
        "8. Fit recurring habits near their preferred time of day",
        "",
        "Return a JSON object with this exact structure:",
        SCHEDULE_RESPONSE_SCHEMA,
        "",
        "Important: Ensure the JSON is valid and parseable.",
    ]
    return "\n".join(lines)


def schedule_system_instruction() -> str:
    return SCHEDULE_SYSTEM_INSTRUCTION


def compose_schedule_prompt(context: ScheduleContext) -> Tuple[str, str]:
    """Return (prompt, system instruction) for a schedule request."""
    return build_schedule_prompt(context), schedule_system_instruction()


def _task_lines(sorted_tasks) -> List[str]:
    if not sorted_tasks:
        return ["No tasks scheduled yet. Suggest a productive day structure."]
    lines = []
    for index, task in enumerate(sorted_tasks[:MAX_PROMPT_TASKS], start=1):
        line = f"{index}. [{task.priority.upper()}] {task.title} (id: {task.id}, {task.time_estimate or 'unknown'} min)"
        if task.due_date:
            line += f" - Due: {task.due_date.isoformat()}"
        if task.category:
            line += f" [{task.category}]"
        lines.append(line)
    remaining = len(sorted_tasks) - MAX_PROMPT_TASKS
    if remaining > 0:
        lines.append(f"... and {remaining} more tasks")
    return lines


def _goal_lines(context: ScheduleContext) -> List[str]:
    if not context.active_goals:
        return ["No active goals set."]
    lines = []
    for goal in context.active_goals[:MAX_PROMPT_GOALS]:
        line = f"- {goal.title} ({goal.progress}% complete)"
        if goal.target_date:
            line += f" - Target: {goal.target_date.isoformat()}"
        lines.append(line)
    return lines


def _habit_lines(context: ScheduleContext) -> List[str]:
    if not context.active_habits:
        return ["No recurring habits to place."]
    lines = []
    for habit in context.active_habits:
        when = habit.preferred_time or "any time"
        lines.append(f"- {habit.name} ({habit.duration} min, {habit.frequency}, preferred: {when})")
    return lines
