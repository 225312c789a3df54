"""Command-line interface for Fugue Analyzer.

Provides commands for:
- analyze: Subject tests, plus countersubject tests when a second voice exists
- stretto: Stretto viability of a subject at every entry distance
- harmony: Implied harmony per beat of one voice
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .analysis import Observation, STRENGTH, CONSIDERATION
from .core import AnalysisConfig, NoteEvent, PITCH_NAMES, BeatFormatter
from .input import NoteLoader, Score
from .inference import KeyDetector

app = typer.Typer(
    name="fugue-analyzer",
    help="Contrapuntal viability checks for fugue subjects and countersubjects",
    rich_markup_mode="markdown",
)
console = Console()

_STYLES = {STRENGTH: "green", CONSIDERATION: "yellow"}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Fugue Analyzer."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


def _load(input_file: Path) -> Score:
    try:
        return NoteLoader().load(input_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _voice(score: Score, name: Optional[str], position: int) -> List[NoteEvent]:
    try:
        return score.voice(name, position)
    except KeyError as e:
        console.print(f"[red]Error: {e.args[0]}[/red]")
        raise typer.Exit(1)


def _config(score: Score, notes: List[NoteEvent], p4_consonant: bool, quiet: bool) -> AnalysisConfig:
    """Use the file's key, or detect one from the notes."""
    if score.tonic is not None:
        return score.config(p4_dissonant=not p4_consonant)

    key_info = KeyDetector().analyze(notes)
    if not quiet:
        console.print(f"   [dim]Detected key: {key_info.name} (confidence {key_info.confidence:.2f})[/dim]")
    return score.config(p4_dissonant=not p4_consonant, tonic=key_info.tonic, mode=key_info.mode)


def _show_observations(title: str, observations: List[Observation], error: Optional[str] = None) -> None:
    console.print(f"\n[cyan]{title}[/cyan]")
    if error:
        console.print(f"   [dim]Not applicable: {error}[/dim]")
        return
    for o in observations:
        style = _STYLES.get(o.type, "white")
        console.print(f"   [{style}]{o.type:>13}[/{style}]  {o.description}")


@app.command()
def analyze(
    input_file: Path = typer.Argument(..., help="Note file (.json or .mid)"),
    subject_name: Optional[str] = typer.Option(None, "--subject", "-s", help="Name of the subject voice"),
    cs_name: Optional[str] = typer.Option(None, "--countersubject", "-c", help="Name of the countersubject voice"),
    p4_consonant: bool = typer.Option(False, "--p4-consonant", help="Treat a fourth against the bass as consonant"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    """Run the subject tests and, with a countersubject, the combination tests.

    Examples:
        fugue-analyzer analyze subject.json
        fugue-analyzer analyze invention.mid --subject dux --countersubject cs
    """
    from .analysis import subject as subject_tests
    from .analysis import pairing
    from .output import to_json

    score = _load(input_file)
    subject = _voice(score, subject_name, 0)
    cs = None
    if cs_name is not None or len(score.voices) > 1:
        cs = _voice(score, cs_name, 1)

    config = _config(score, subject, p4_consonant, quiet=as_json)

    results = {
        "harmonic_implication": subject_tests.test_harmonic_implication(subject, config),
        "rhythmic_variety": subject_tests.test_rhythmic_variety(subject, config),
        "tonal_answer": subject_tests.test_tonal_answer(subject, config),
    }
    if cs is not None:
        results["rhythmic_complementarity"] = pairing.test_rhythmic_complementarity(subject, cs, config)
        results["contour_independence"] = pairing.test_contour_independence(subject, cs, config)
        results["double_counterpoint"] = pairing.test_double_counterpoint(subject, cs, config)
        results["modulatory_robustness"] = pairing.test_modulatory_robustness(subject, cs, config)

    if as_json:
        console.print_json(to_json(results))
        return

    console.print(f"\n[bold blue]Fugue Analysis: {input_file.name}[/bold blue]")
    console.print(f"   Meter: {config.meter}   Key: {PITCH_NAMES[config.tonic]} {config.mode}")
    for name, result in results.items():
        _show_observations(name.replace("_", " ").title(), result.observations, result.error)

    console.print("\n[green][OK] Analysis complete![/green]")


@app.command()
def stretto(
    input_file: Path = typer.Argument(..., help="Note file (.json or .mid)"),
    subject_name: Optional[str] = typer.Option(None, "--subject", "-s", help="Name of the subject voice"),
    increment: float = typer.Option(1.0, "--increment", "-i", help="Step between entry distances (quarter notes)"),
    octave: int = typer.Option(12, "--octave", "-o", help="Transposition of the following voice (semitones)"),
    min_overlap: float = typer.Option(0.5, "--min-overlap", help="Minimum overlap as a fraction of the subject"),
    p4_consonant: bool = typer.Option(False, "--p4-consonant", help="Treat a fourth against the bass as consonant"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    """Test the subject in stretto against itself at every entry distance."""
    from .analysis.stretto import test_stretto_viability
    from .output import to_json

    score = _load(input_file)
    subject = _voice(score, subject_name, 0)
    config = _config(score, subject, p4_consonant, quiet=as_json)

    try:
        report = test_stretto_viability(subject, config, min_overlap, increment, octave)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(to_json(report))
        return

    if report.error:
        console.print(f"[yellow]Stretto not applicable: {report.error}[/yellow]")
        return

    table = Table(title=f"Stretto at the {'octave' if abs(octave) == 12 else f'{octave} semitones'}")
    table.add_column("Distance", style="cyan")
    table.add_column("Overlap", style="green")
    table.add_column("Issues", style="red")
    table.add_column("Warnings", style="yellow")
    table.add_column("Verdict", style="magenta")

    for r in report.results:
        verdict = "clean" if r.clean else "viable" if r.viable else "problematic"
        table.add_row(
            r.distance_label,
            f"{r.overlap_percent}%",
            "\n".join(i.description for i in r.issues) or "-",
            "\n".join(w.description for w in r.warnings) or "-",
            verdict,
        )
    console.print(table)
    console.print(f"   {len(report.viable)} viable, {len(report.clean)} clean of {len(report.results)} distances")


@app.command()
def harmony(
    input_file: Path = typer.Argument(..., help="Note file (.json or .mid)"),
    voice_name: Optional[str] = typer.Option(None, "--voice", help="Name of the voice to analyze"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    """Show the implied harmony at every beat of one voice."""
    from .inference import ChordSequenceInference
    from .output import to_json

    score = _load(input_file)
    notes = _voice(score, voice_name, 0)
    config = _config(score, notes, False, quiet=as_json)
    result = ChordSequenceInference(config).analyze(notes)

    if as_json:
        console.print_json(to_json(result))
        return

    if result.error:
        console.print(f"[yellow]No harmony: {result.error}[/yellow]")
        return

    formatter = BeatFormatter(config.meter)
    table = Table(title="Implied Harmony")
    table.add_column("Beat", style="cyan")
    table.add_column("Chord", style="green")
    table.add_column("Roman", style="blue")
    table.add_column("Score", style="yellow")
    table.add_column("Chain", style="magenta")

    for b in result.beats:
        table.add_row(
            formatter.format_beat(b.onset),
            b.name,
            b.roman_numeral(config.tonic, config.mode),
            f"{b.score:.2f}" if b.root is not None else "-",
            f"{b.chain_position}/{b.chain_length}" if b.root is not None else "-",
        )
    console.print(table)
    console.print(f"   Total score: {result.total_score:.2f}")


if __name__ == "__main__":
    app()
