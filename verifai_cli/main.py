import json
import sys
from pathlib import Path

import questionary
import typer
from pydantic import ValidationError
from rich.panel import Panel

from verifai_cli.config import load_settings, setup_logging
from verifai_cli.detectors.llm import LLMAnalyzer
from verifai_cli.detectors.sentiment import SentimentDetector
from verifai_cli.search import RelatedContentFinder, WebSearchClient
from verifai_cli.service import AnalysisService
from verifai_cli.store import AnalysisStore, StoreError
from verifai_cli.ui import (
    analysis_spinner,
    console,
    print_welcome,
    render_factors,
    render_history,
    render_related,
    render_stats,
    render_status,
    render_trend_chart,
    render_verdict,
)

app = typer.Typer(help="Verifai: estimate whether text, images, video or documents were AI-generated.",
                  add_completion=False)

RELATED_TIMEOUT = 10.0


def _settings():
    try:
        settings = load_settings()
    except ValidationError as e:
        for error in e.errors():
            name = ".".join(str(part) for part in error["loc"])
            console.print(f"[bold red]Configuración inválida[/bold red]: {name}: {error['msg']}")
        raise typer.Exit(code=1)
    setup_logging(settings.log_level)
    return settings


def _build_service(use_llm: bool = True) -> AnalysisService:
    settings = _settings()

    llm = None
    if use_llm and settings.anthropic_api_key:
        llm = LLMAnalyzer.from_settings(settings)

    return AnalysisService(
        settings,
        llm=llm,
        sentiment=SentimentDetector(settings.sentiment_model),
        finder=RelatedContentFinder(WebSearchClient.from_settings(settings)),
        store=AnalysisStore(settings.store_path),
    )


def _report(service: AnalysisService, record, err, export_json: bool, related: bool):
    if err:
        if export_json:
            print(json.dumps({"error": err}))
        else:
            console.print(f"[bold red]Error[/bold red]: {err}")
        raise typer.Exit(code=1)

    if related:
        with analysis_spinner("Buscando contenido relacionado..."):
            service.wait_related(record.id, timeout=RELATED_TIMEOUT)
    else:
        service.cancel_related(record.id)

    if export_json:
        print(record.model_dump_json(indent=2))
        return

    render_verdict(record)
    render_factors(record.verdict.factors)
    if related:
        render_related(record.related_content)


@app.command(name="text")
def text_cmd(
    text: str = typer.Argument(None, help="Text to analyze (or use --file)"),
    file: Path = typer.Option(None, "--file", "-f", exists=True, dir_okay=False, readable=True,
                              help="Read the text from a file"),
    export_json: bool = typer.Option(False, "--json", help="Export the result as JSON"),
    no_llm: bool = typer.Option(False, "--no-llm", help="Disable the generative backend (local heuristics only)"),
    no_related: bool = typer.Option(False, "--no-related", help="Skip the related-content search"),
    user: str = typer.Option("anonymous", help="User id the analysis is stored under"),
):
    """Analyze a text and estimate whether it was written by AI."""
    if file is not None:
        text = file.read_text(encoding="utf-8")
    elif text is None and not sys.stdin.isatty():
        text = sys.stdin.read()

    service = _build_service(use_llm=not no_llm)
    try:
        if export_json:
            record, err = service.analyze_text(text or "", user_id=user)
        else:
            with analysis_spinner("Analizando texto..."):
                record, err = service.analyze_text(text or "", user_id=user)
        _report(service, record, err, export_json, related=not no_related)
    finally:
        service.shutdown()


@app.command(name="file")
def file_cmd(
    path: Path = typer.Argument(..., help="Document, image or video to analyze"),
    export_json: bool = typer.Option(False, "--json", help="Export the result as JSON"),
    no_llm: bool = typer.Option(False, "--no-llm", help="Disable the generative backend (documents only)"),
    no_related: bool = typer.Option(False, "--no-related", help="Skip the related-content search"),
    user: str = typer.Option("anonymous", help="User id the analysis is stored under"),
):
    """Analyze a document (.txt/.pdf/.docx), image or video."""
    service = _build_service(use_llm=not no_llm)
    try:
        if export_json:
            record, err = service.analyze_file(path, user_id=user)
        else:
            with analysis_spinner(f"Analizando {path.name}..."):
                record, err = service.analyze_file(path, user_id=user)
        _report(service, record, err, export_json, related=not no_related)
    finally:
        service.shutdown()


@app.command(name="history")
def history_cmd(
    count: int = typer.Option(10, help="Number of analyses to show"),
    user: str = typer.Option(None, help="Only show analyses stored under this user id"),
    export_json: bool = typer.Option(False, "--json", help="Export results as JSON"),
):
    """List past analyses, newest first, with the AI-probability trend."""
    settings = _settings()
    try:
        records = AnalysisStore(settings.store_path).query(user_id=user, limit=count)
    except StoreError as e:
        console.print(f"[bold red]Error[/bold red]: {e}")
        raise typer.Exit(code=1)

    if export_json:
        print(json.dumps([r.model_dump(mode="json") for r in records], indent=2))
        return
    if not records:
        console.print("[dim]No hay análisis guardados todavía.[/dim]")
        return
    render_history(records)
    render_trend_chart(records)


@app.command(name="stats")
def stats_cmd(
    export_json: bool = typer.Option(False, "--json", help="Export results as JSON"),
):
    """Aggregate statistics over every stored analysis."""
    settings = _settings()
    try:
        stats = AnalysisStore(settings.store_path).dashboard_stats()
    except StoreError as e:
        console.print(f"[bold red]Error[/bold red]: {e}")
        raise typer.Exit(code=1)

    if export_json:
        stats = dict(stats, recent_analyses=[r.model_dump(mode="json") for r in stats["recent_analyses"]])
        print(json.dumps(stats, indent=2))
        return
    render_stats(stats)
    if stats["recent_analyses"]:
        render_history(stats["recent_analyses"])


@app.command(name="status")
def status_cmd(
    export_json: bool = typer.Option(False, "--json", help="Export results as JSON"),
):
    """Check which backends are configured and reachable."""
    service = _build_service()
    try:
        with analysis_spinner("Comprobando servicios..."):
            status = service.system_status()
    finally:
        service.shutdown()

    if export_json:
        print(json.dumps(status, indent=2))
        return
    render_status(status)


_CHOICES = {
    "Texto": "text",
    "Archivo (documento, imagen o video)": "file",
    "Historial": "history",
    "Estadísticas": "stats",
    "Estado de los servicios": "status",
    "Salir": "exit",
}


@app.command(name="interactive")
def interactive_cmd():
    """Start an interactive session."""
    print_welcome()

    while True:
        try:
            choice = questionary.select("¿Qué quieres hacer?", choices=list(_CHOICES)).ask()
            action = _CHOICES.get(choice, "exit")

            if action == "exit":
                console.print("[dim]¡Hasta luego![/dim]")
                break

            elif action == "text":
                text = questionary.text("Pega el texto a analizar:", multiline=True).ask()
                if text:
                    text_cmd(text=text, file=None, export_json=False, no_llm=False,
                             no_related=False, user="anonymous")

            elif action == "file":
                path = questionary.path("Ruta del archivo:").ask()
                if path:
                    file_cmd(path=Path(path).expanduser(), export_json=False, no_llm=False,
                             no_related=False, user="anonymous")

            elif action == "history":
                history_cmd(count=10, user=None, export_json=False)

            elif action == "stats":
                stats_cmd(export_json=False)

            elif action == "status":
                status_cmd(export_json=False)

            console.print()

        except typer.Exit:
            # Command errors are already printed; keep the session alive
            continue
        except KeyboardInterrupt:
            console.print("\n[dim]Sesión terminada.[/dim]")
            break
        except Exception as e:
            console.print(Panel(f"{e}", title="[bold red]Error inesperado[/bold red]", border_style="red"))


def main():
    if len(sys.argv) == 1:
        interactive_cmd()
    else:
        app()


if __name__ == "__main__":
    main()
