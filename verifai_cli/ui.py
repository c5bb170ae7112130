import os
import time
from contextlib import contextmanager

import plotille
import pyfiglet
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from verifai_cli.models import confidence_level

console = Console()

_BACKEND_LABELS = {
    "heuristic": "Análisis heurístico local",
    "llm": "Modelo generativo",
    "combined": "Combinado",
}


def clear_screen():
    os.system('cls' if os.name == 'nt' else 'clear')


def type_text(text: str, style: str = "bold white", delay: float = 0.01):
    for char in text:
        console.print(f"[{style}]{char}[/{style}]", end="")
        time.sleep(delay)
    console.print()


def print_welcome():
    clear_screen()
    ascii_banner = pyfiglet.figlet_format("VERIFAI", font="slant")
    console.print(f"[bold magenta]{ascii_banner}[/bold magenta]")
    console.print("[dim]" + "─" * 80 + "[/dim]\n")
    type_text("¿Humano o IA? Analicemos tu contenido.", style="bold white", delay=0.02)
    console.print()


@contextmanager
def analysis_spinner(label: str):
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as progress:
        progress.add_task(f"[cyan]{label}", total=None)
        yield


def _color(probability_ai: int) -> str:
    if probability_ai >= 70:
        return "red"
    if probability_ai > 50:
        return "yellow"
    return "green"


def backend_label(verdict) -> str:
    """Human-readable source line, decided from the backend tag alone."""
    if verdict.backend == "combined":
        parts = " + ".join(_BACKEND_LABELS.get(s, s) for s in verdict.sources)
        return f"{_BACKEND_LABELS['combined']} ({parts})"
    if verdict.backend == "llm":
        label = f"{_BACKEND_LABELS['llm']} ({verdict.model})" if verdict.model else _BACKEND_LABELS["llm"]
        return label + (" [dim](respuesta no interpretable, resultado neutro)[/dim]" if verdict.fallback else "")
    return _BACKEND_LABELS["heuristic"]


def render_verdict(record):
    verdict = record.verdict
    color = _color(verdict.probability_ai)
    if verdict.is_ai:
        icon, label = "🔴", "PROBABLEMENTE GENERADO POR IA"
    else:
        icon, label = "🟢", "PROBABLEMENTE ESCRITO POR UN HUMANO"

    summary = (
        f"[bold {color}]{icon}  VEREDICTO: {label}[/bold {color}]\n\n"
        f"  Probabilidad IA     : [bold {color}]{verdict.probability_ai}%[/bold {color}]\n"
        f"  Probabilidad humano : {verdict.probability_human}%\n"
        f"  Confianza           : {verdict.confidence}% ({confidence_level(verdict.confidence)})\n"
        f"  Fuente              : {backend_label(verdict)}\n"
        f"  Tiempo              : {record.metadata.processing_time_ms} ms\n\n"
        f"  [dim]{verdict.explanation}[/dim]"
    )
    console.print()
    console.print(Panel(
        summary,
        title=f"[bold]Análisis de {record.content_type}[/bold]",
        border_style=color,
        expand=False,
        padding=(1, 4),
    ))


def build_factors_table(factors: list) -> Table:
    table = Table(title="Factores", show_header=True, header_style="bold magenta")
    table.add_column("Factor", width=30)
    table.add_column("Peso", justify="center", width=6)
    table.add_column("Valor", justify="center", width=6)
    table.add_column("Impacto", justify="center", width=10)
    table.add_column("Descripción")
    impact_styles = {"negative": "[red]negativo[/red]", "positive": "[green]positivo[/green]",
                     "neutral": "[dim]neutro[/dim]"}
    for f in factors:
        table.add_row(f.name, f"{f.weight:.2f}", f"{f.value:.0f}", impact_styles[f.impact], f.description)
    return table


def render_factors(factors: list):
    if not factors:
        console.print("[dim]Sin factores detallados para este análisis.[/dim]")
        return
    console.print(build_factors_table(factors))


def render_related(items: list):
    if not items:
        console.print("[dim]Sin contenido relacionado.[/dim]")
        return
    table = Table(title="Contenido relacionado", show_header=True, header_style="bold cyan")
    table.add_column("Título", width=40)
    table.add_column("Fuente", width=22)
    table.add_column("Relevancia", justify="center", width=10)
    table.add_column("URL", style="dim")
    for item in items:
        table.add_row(item.title, item.source, f"{item.relevance:.0f}", item.url)
    console.print(table)


def build_history_table(title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Fecha", style="dim", width=19)
    table.add_column("Tipo", width=9)
    table.add_column("Contenido", width=40)
    table.add_column("IA %", justify="center")
    table.add_column("Confianza", justify="center")
    table.add_column("Fuente", width=10)
    return table


def render_history(records: list):
    table = build_history_table(f"Últimos {len(records)} análisis")
    for r in records:
        v = r.verdict
        color = _color(v.probability_ai)
        when = (r.created_at or r.metadata.timestamp).strftime("%Y-%m-%d %H:%M:%S")
        snippet = r.content.replace("\n", " ")
        snippet = snippet[:37] + "..." if len(snippet) > 40 else snippet
        table.add_row(when, r.content_type, snippet, f"[{color}]{v.probability_ai}[/{color}]",
                      str(v.confidence), v.backend)
    console.print(table)


def render_stats(stats: dict):
    lines = [
        f"  Análisis totales    : [bold]{stats['total_analyses']}[/bold]",
        f"  Confianza media     : {stats['average_confidence']}%",
        f"  Alta confianza (>70): {stats['accuracy_rate']}%",
    ]
    for entry in stats["popular_types"]:
        lines.append(f"  {entry['type']:<20}: {entry['count']} ({entry['percentage']}%)")
    console.print(Panel("\n".join(lines), title="[bold]Estadísticas[/bold]", border_style="cyan", expand=False))


def render_status(status: dict):
    styles = {"online": "[green]online[/green]", "limited": "[yellow]limited[/yellow]",
              "offline": "[red]offline[/red]"}
    table = Table(title="Estado de los servicios", show_header=True, header_style="bold cyan")
    table.add_column("Servicio", width=12)
    table.add_column("Estado", justify="center")
    for name, state in status.items():
        table.add_row(name, styles.get(state, state))
    console.print(table)


def render_trend_chart(records: list):
    if not records or len(records) < 3:
        console.print("[dim]Se necesitan al menos 3 análisis para mostrar la tendencia.[/dim]")
        return

    console.print("\n[bold cyan]Probabilidad IA por análisis (antiguo -> reciente)[/bold cyan]")

    scores = [r.verdict.probability_ai for r in reversed(records)]
    x_data = list(range(1, len(scores) + 1))

    fig = plotille.Figure()
    fig.width = 60
    fig.height = 15
    fig.set_x_limits(min_=1, max_=len(scores))
    fig.set_y_limits(min_=0, max_=100)
    fig.y_label = "IA %"
    fig.x_label = "Análisis"

    avg_score = sum(scores) / len(scores)
    plot_color = 'green' if avg_score <= 50 else 'yellow' if avg_score < 70 else 'red'
    fig.plot(x_data, scores, lc=plot_color)

    print(fig.show())
