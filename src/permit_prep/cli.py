# ABOUTME: Provides the permit-prep CLI for recording attempts and inspecting study analytics.
# ABOUTME: Wires the YAML config into stores, aggregators, the diagnostic and the recommendation cache.

import json
import logging
import random
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .analytics import AnalyticsAggregator, export_analytics_report, format_study_time
from .common import AnswerRecord, AppConfig, Category, ParquetAttemptStore, PerformanceTracker, load_config
from .diagnostic import DiagnosticQuestionSelector, load_questions, score_diagnostic
from .recommendation import (
    ClaudeRecommendationGenerator,
    JsonPreferencesStore,
    RecommendationCache,
    RecommendationService,
)

console = Console()
app = typer.Typer(help="Study analytics for California DMV permit test prep.")


@dataclass
class CliState:
    config: AppConfig

    def store(self) -> ParquetAttemptStore:
        return ParquetAttemptStore(self.config.paths.attempts_path)

    def aggregator(self) -> AnalyticsAggregator:
        return AnalyticsAggregator(self.store(), timezone=self.config.analytics.timezone)

    def tracker(self) -> PerformanceTracker:
        return PerformanceTracker(self.store())

    def recommendation_cache(self, tracker: Optional[PerformanceTracker] = None) -> RecommendationCache:
        rec_cfg = self.config.recommendation
        return RecommendationCache(
            JsonPreferencesStore(self.config.paths.preferences_path),
            tracker or self.tracker(),
            ttl=rec_cfg.ttl,
            drift_threshold=rec_cfg.drift_threshold,
        )


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj


def _parse_category(value: str) -> Category:
    try:
        return Category.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--category") from exc


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(Path("configs/permit_prep.yaml"), "--config", help="Path to the YAML config."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level."),
) -> None:
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    try:
        ctx.obj = CliState(config=load_config(config))
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


@app.command()
def record(
    ctx: typer.Context,
    question_id: str = typer.Option(..., "--question-id", help="Identifier of the answered question."),
    category: str = typer.Option(..., "--category", help="Question category, e.g. 'Traffic Signs'."),
    correct: bool = typer.Option(True, "--correct/--incorrect", help="Whether the answer was correct."),
    seconds: int = typer.Option(0, "--seconds", min=0, help="Time taken to answer."),
) -> None:
    """Append one answered question to the attempt log."""
    tracker = _state(ctx).tracker()
    attempt = tracker.record_attempt(question_id, _parse_category(category), correct, seconds)
    typer.echo(f"[record] {attempt.question_id} ({attempt.category.value}) correct={attempt.was_correct}")


@app.command()
def daily(
    ctx: typer.Context,
    days: Optional[int] = typer.Option(None, "--days", min=0, help="Window length in days."),
    active_only: bool = typer.Option(False, "--active-only", help="Hide days without attempts."),
) -> None:
    """Show per-day question counts, accuracy and study time."""
    state = _state(ctx)
    days = state.config.analytics.daily_window_days if days is None else days
    aggregator = state.aggregator()
    stats = aggregator.accuracy_trend(days) if active_only else aggregator.daily_stats(days)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Day")
    table.add_column("Answered")
    table.add_column("Correct")
    table.add_column("Accuracy")
    table.add_column("Study Time")
    for stat in stats:
        table.add_row(
            stat.day_start.date().isoformat(),
            str(stat.questions_answered),
            str(stat.correct_answers),
            f"{stat.accuracy:.0%}",
            format_study_time(stat.total_time_spent),
        )
    console.print(table)


@app.command()
def weekly(
    ctx: typer.Context,
    weeks: Optional[int] = typer.Option(None, "--weeks", min=0, help="Window length in weeks."),
) -> None:
    """Show per-week totals; weeks without attempts are omitted."""
    state = _state(ctx)
    weeks = state.config.analytics.weekly_window_weeks if weeks is None else weeks
    stats = state.aggregator().weekly_stats(weeks)
    if not stats:
        console.print("[yellow]No attempts in the selected weeks.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Week of")
    table.add_column("Answered")
    table.add_column("Accuracy")
    table.add_column("Study Time")
    table.add_column("Days Studied")
    for stat in stats:
        table.add_row(
            stat.week_start.date().isoformat(),
            str(stat.questions_answered),
            f"{stat.accuracy:.0%}",
            format_study_time(stat.time_spent),
            str(stat.days_studied),
        )
    console.print(table)


@app.command()
def trend(
    ctx: typer.Context,
    category: str = typer.Option(..., "--category", help="Question category to chart."),
    days: Optional[int] = typer.Option(None, "--days", min=0, help="Window length in days."),
) -> None:
    """Show daily accuracy for one category on days it was practiced."""
    state = _state(ctx)
    days = state.config.analytics.daily_window_days if days is None else days
    parsed = _parse_category(category)
    points = state.aggregator().category_trend(parsed, days)
    if not points:
        console.print(f"[yellow]No {parsed.value} attempts in the last {days} days.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta", title=parsed.value)
    table.add_column("Day")
    table.add_column("Attempts")
    table.add_column("Accuracy")
    for point in points:
        table.add_row(point.day_start.date().isoformat(), str(point.attempts), f"{point.accuracy:.0%}")
    console.print(table)


@app.command()
def diagnostic(
    ctx: typer.Context,
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible selection."),
    output: Optional[Path] = typer.Option(None, "--output", help="Write the selected questions as JSON."),
) -> None:
    """Select the questions of a diagnostic test."""
    state = _state(ctx)
    selector = DiagnosticQuestionSelector.from_files(
        state.config.paths.diagnostic_questions_path,
        state.config.paths.question_pool_path,
        category_quotas=state.config.diagnostic.category_quotas,
        rng=random.Random(seed),
    )
    questions = selector.select(state.config.diagnostic.question_count)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps([q.to_dict() for q in questions], indent=2), encoding="utf-8")
        typer.echo(f"[diagnostic] Wrote {len(questions)} questions to {output}")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#")
    table.add_column("Question ID")
    table.add_column("Category")
    for index, question in enumerate(questions, 1):
        table.add_row(str(index), question.id, question.category.value)
    console.print(table)


@app.command("diagnostic-score")
def diagnostic_score(
    ctx: typer.Context,
    answers_path: Path = typer.Option(..., "--answers", exists=True, dir_okay=False, help="JSON list of {id, userAnswer}."),
    seconds: float = typer.Option(0.0, "--seconds", min=0.0, help="Total time taken for the test."),
) -> None:
    """Score submitted diagnostic answers against the question files."""
    state = _state(ctx)
    paths = state.config.paths
    by_id = {q.id: q for q in load_questions(paths.question_pool_path)}
    by_id.update({q.id: q for q in load_questions(paths.diagnostic_questions_path)})

    answers = []
    for entry in json.loads(answers_path.read_text(encoding="utf-8")):
        question = by_id.get(str(entry["id"]))
        if question is None:
            raise typer.BadParameter(f"Unknown question id {entry['id']!r}", param_hint="--answers")
        user_answer = str(entry.get("userAnswer", ""))
        answers.append(AnswerRecord(question, user_answer, user_answer == question.correct_answer))

    result = score_diagnostic(
        answers,
        timedelta(seconds=seconds),
        pass_threshold=state.config.diagnostic.pass_threshold,
        weak_threshold=state.config.diagnostic.weak_threshold,
    )

    verdict = "[green]PASS[/green]" if result.passed else f"[red]FAIL[/red] ({result.gap_points} points short)"
    console.print(f"[bold]Score:[/] {result.score}/{result.total_questions} ({result.percentage}%) {verdict}")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Category")
    table.add_column("Correct")
    table.add_column("Percent")
    table.add_column("Weak")
    for category, score in result.category_breakdown.items():
        table.add_row(category.value, f"{score.correct}/{score.total}", f"{score.percentage}%", "yes" if score.is_weak else "")
    console.print(table)


@app.command()
def recommend(
    ctx: typer.Context,
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the cached text and ask Claude again."),
) -> None:
    """Show the study recommendation, generating a new one when the cache is stale."""
    state = _state(ctx)
    rec_cfg = state.config.recommendation
    tracker = state.tracker()
    cache = state.recommendation_cache(tracker)
    if refresh:
        cache.invalidate()

    generator = ClaudeRecommendationGenerator(model=rec_cfg.model, max_tokens=rec_cfg.max_tokens)
    recommendation = RecommendationService(cache, tracker, generator).recommend()
    if recommendation is None:
        console.print("[red]Could not get a recommendation right now. Try again later.[/red]")
        raise typer.Exit(code=1)

    source = "cached" if recommendation.from_cache else "new"
    console.print(f"[bold]Recommendation ({source}, updated {cache.time_since_last_update()}):[/]")
    console.print(recommendation.text)
    if recommendation.focus_categories:
        focus = ", ".join(category.value for category in recommendation.focus_categories)
        console.print(f"[bold]Focus:[/] {focus}")


@app.command("recommendation-status")
def recommendation_status(
    ctx: typer.Context,
    clear: bool = typer.Option(False, "--clear", help="Invalidate the cached recommendation."),
) -> None:
    """Show whether a cached AI recommendation is still valid."""
    cache = _state(ctx).recommendation_cache()
    if clear:
        cache.invalidate()
        typer.echo("[recommendation] Cache cleared")
        return

    text = cache.get()
    console.print(f"[bold]Last updated:[/] {cache.time_since_last_update()}")
    if text is None:
        console.print("[yellow]No valid cached recommendation.[/yellow]")
    else:
        console.print(text)


@app.command()
def export(
    ctx: typer.Context,
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Directory to write reports."),
) -> None:
    """Export analytics tables and a JSON summary."""
    state = _state(ctx)
    output_dir = output_dir or state.config.paths.reports_dir
    paths = export_analytics_report(
        state.aggregator(),
        output_dir,
        days=state.config.analytics.daily_window_days,
        weeks=state.config.analytics.weekly_window_weeks,
    )
    for name, path in paths.items():
        typer.echo(f"[export] {name}: {path}")


if __name__ == "__main__":
    app()
