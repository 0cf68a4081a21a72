import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich import print
from rich.logging import RichHandler
from rich.markup import escape

from .artifacts import save_failed_run, save_run
from .errors import GavagaiException, ProviderNotConfigured, ResponseParseError, UnparseableResponse
from .extraction import extract_json
from .interpret import run_interpretation
from .llm import AnthropicAdapter, OpenAIAdapter
from .models import (
    BatchItem,
    FewShotExample,
    GavagaiResponse,
    InterpretOptions,
    KnowledgeBase,
    ModelSpec,
    Ontology,
    Utterance,
    UtteranceBatch,
    ValidationResult,
)
from .parser import parse_response
from .policy import should_auto_execute
from .prompts import build_prompt
from .registry import AdapterRegistry
from .validation import validate

app = typer.Typer(help="Interpret fuzzy utterances against an ontology with an LLM.")

PROVIDERS = {
    "anthropic": ("ANTHROPIC_API_KEY", AnthropicAdapter),
    "openai": ("OPENAI_API_KEY", OpenAIAdapter),
}


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline steps at DEBUG level."),
):
    """Gavagai CLI entrypoint."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[RichHandler()])
    if ctx.invoked_subcommand is None:
        print(escape(ctx.get_help()))
        raise typer.Exit(code=0)


def _read_api_key(env_var: str) -> str:
    load_dotenv()
    api_key = os.getenv(env_var)
    if not api_key:
        print(f"[red]{env_var} not found in environment.[/red]")
        raise typer.Exit(code=1)
    return api_key


def _read_json(file: Path) -> Any:
    if not file.exists():
        print(f"[red]File not found: {escape(str(file))}[/red]")
        raise typer.Exit(code=1)
    try:
        return json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        print(f"[red]Invalid JSON in {escape(str(file))}:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)


def _load_ontology(file: Path) -> Ontology:
    try:
        return Ontology.model_validate(_read_json(file))
    except ValidationError as exc:
        print(f"[red]Invalid ontology in {escape(str(file))}:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2)


def _load_options(
    current_date: Optional[str], few_shot: Optional[Path], knowledge: Optional[Path]
) -> InterpretOptions:
    try:
        return InterpretOptions(
            current_date=current_date,
            few_shot=[FewShotExample.model_validate(item) for item in _read_json(few_shot)] if few_shot else None,
            knowledge_base=KnowledgeBase.model_validate(_read_json(knowledge)) if knowledge else None,
        )
    except ValidationError as exc:
        print(f"[red]Invalid options:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2)


def _build_input(texts: List[str], source: str) -> Utterance | UtteranceBatch:
    if len(texts) == 1:
        return Utterance(source=source, raw=texts[0])
    return UtteranceBatch(source=source, utterances=[BatchItem(raw=text) for text in texts])


def _print_response(response: GavagaiResponse) -> None:
    print(f"[bold]Inferred intent:[/bold] {escape(response.meta.inferredIntent)}")

    print("\n[bold]Propositions[/bold]")
    if response.propositions:
        for i, prop in enumerate(response.propositions, 1):
            marker = "[green]auto[/green]" if should_auto_execute(prop) else "[yellow]review[/yellow]"
            print(f"{i}. {escape(prop.operation)} ({marker}) <- {escape(prop.record.originalRaw)}")
            for ambiguity in prop.ambiguities or []:
                print(f"   ? {escape(ambiguity.field)}: {escape(ambiguity.reason)}")
    else:
        print("- none")

    if response.alternative_propositions:
        print(f"\n[bold]Alternatives:[/bold] {len(response.alternative_propositions)}")
    if response.unresolved:
        print("\n[bold]Unresolved[/bold]")
        for item in response.unresolved:
            print(f"- {escape(item.originalRaw)}: {escape(item.reason)}")
    if response.new_entities:
        print("\n[bold]Proposed entities[/bold]")
        for entity in response.new_entities:
            print(f"- {escape(entity.alias)} ({escape(entity.entityType)}): {escape(entity.rationale)}")
    if response.answer:
        print(f"\n[bold]Answer:[/bold] {escape(response.answer)}")


def _print_validation(result: ValidationResult) -> None:
    if result.valid:
        print("\n[green]Response is valid against the ontology.[/green]")
        return
    print("\n[yellow][bold]Validation errors[/bold][/yellow]")
    for schema_error in result.schemaErrors:
        print(f"[yellow]- schema {escape(schema_error.path)}: {escape(schema_error.message)}[/yellow]")
    for constraint_error in result.constraintErrors:
        print(f"[yellow]- {constraint_error.code}: {escape(constraint_error.message)}[/yellow]")


@app.command()
def prompt(
    texts: List[str] = typer.Argument(..., help="Utterance(s); several form a batch."),
    ontology: Path = typer.Option(..., "--ontology", help="Ontology JSON file."),
    source: str = typer.Option("cli", "--source"),
    current_date: Optional[str] = typer.Option(None, "--date", help="Current date, YYYY-MM-DD."),
    few_shot: Optional[Path] = typer.Option(None, "--few-shot", help="JSON list of few-shot examples."),
    knowledge: Optional[Path] = typer.Option(None, "--knowledge", help="Knowledge base JSON file."),
):
    """Print the assembled prompts without calling a model."""
    options = _load_options(current_date, few_shot, knowledge)
    pair = build_prompt(
        _build_input(texts, source),
        _load_ontology(ontology),
        options.current_date,
        options.few_shot,
        options.knowledge_base,
    )
    print("[bold]System prompt[/bold]")
    print(escape(pair.system))
    print("\n[bold]User message[/bold]")
    print(escape(pair.user))


@app.command("interpret")
def interpret_command(
    texts: List[str] = typer.Argument(..., help="Utterance(s); several form a batch."),
    ontology: Path = typer.Option(..., "--ontology", help="Ontology JSON file."),
    provider: str = typer.Option("anthropic", "--provider", help="anthropic or openai."),
    model: str = typer.Option(..., "--model", help="Provider model name."),
    source: str = typer.Option("cli", "--source"),
    current_date: Optional[str] = typer.Option(None, "--date", help="Current date, YYYY-MM-DD."),
    few_shot: Optional[Path] = typer.Option(None, "--few-shot", help="JSON list of few-shot examples."),
    knowledge: Optional[Path] = typer.Option(None, "--knowledge", help="Knowledge base JSON file."),
    runs_dir: str = typer.Option("runs", "--runs-dir", help="Where run artifacts are written."),
):
    """Interpret utterances with a model and validate the result."""
    normalized_provider = provider.lower()
    if normalized_provider not in PROVIDERS:
        print(f"[red]Invalid provider. Use one of: {', '.join(PROVIDERS)}.[/red]")
        raise typer.Exit(code=2)

    resolved_ontology = _load_ontology(ontology)
    options = _load_options(current_date, few_shot, knowledge)
    env_var, adapter_cls = PROVIDERS[normalized_provider]

    registry = AdapterRegistry()
    registry.register(adapter_cls(api_key=_read_api_key(env_var)))

    try:
        result = run_interpretation(
            _build_input(texts, source),
            resolved_ontology,
            ModelSpec(provider=normalized_provider, model=model),
            options,
            registry=registry,
        )
    except UnparseableResponse as exc:
        error_path = save_failed_run(exc, runs_dir=runs_dir)
        print(f"[red]Model returned an unparseable response.[/red] Saved error artifact to [bold]{escape(error_path)}[/bold].")
        raise typer.Exit(code=1)
    except ProviderNotConfigured as exc:
        print(f"[red]{escape(exc.message)}[/red]")
        raise typer.Exit(code=2)
    except GavagaiException as exc:
        print(f"[red]{exc.code}:[/red] {escape(exc.message)}")
        raise typer.Exit(code=1)

    validation = validate(result.response, resolved_ontology)
    paths = save_run(result, validation, runs_dir=runs_dir)
    print(f"Saved response to [bold]{escape(paths['response_path'])}[/bold]")
    _print_response(result.response)
    _print_validation(validation)


@app.command("validate")
def validate_command(
    file: Path = typer.Argument(..., help="Saved model reply (raw text or JSON)."),
    ontology: Path = typer.Option(..., "--ontology", help="Ontology JSON file."),
):
    """Parse a saved model reply and check it against an ontology."""
    if not file.exists():
        print("[red]File not found[/red]")
        raise typer.Exit(code=1)
    resolved_ontology = _load_ontology(ontology)

    try:
        response = parse_response(extract_json(file.read_text(encoding="utf-8")))
    except ResponseParseError as exc:
        print(f"[red]{exc.code}:[/red] {escape(exc.error)}")
        for schema_error in exc.schema_errors:
            print(f"[red]- {escape(schema_error.path)}: {escape(schema_error.message)}[/red]")
        raise typer.Exit(code=1)

    _print_response(response)
    result = validate(response, resolved_ontology)
    _print_validation(result)
    if not result.valid:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
