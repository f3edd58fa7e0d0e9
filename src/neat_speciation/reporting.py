from __future__ import annotations

from pathlib import Path

from .config import EvolutionConfig
from .evolution import GenerationRecord
from .fitness import TruthTableFitness
from .genome import Genome


def format_parameters(cfg: EvolutionConfig, threshold: float, max_iterations: int) -> str:
    d = cfg.distance
    lines = [
        "Parameters:",
        f"  inputs: {cfg.input_size} (+ bias fixed at 1)",
        f"  outputs: {cfg.output_size}",
        f"  max hidden nodes: {cfg.max_hidden}",
        f"  population size: {cfg.pop_size}",
        f"  max iterations: {max_iterations}",
        f"  fitness threshold: {threshold}",
        f"  max stagnation: {cfg.max_stagnation}",
        f"  mutation rate: {cfg.mutation.rate_percent:g}%",
        f"  distance coefficients: {d.c1:g}, {d.c2:g}, {d.c3:g}",
        f"  distance threshold: {d.threshold:g}",
        f"  seed: {cfg.seed if cfg.seed is not None else 'random'}",
    ]
    return "\n".join(lines)


def format_result(genome: Genome, fitness: TruthTableFitness) -> str:
    outputs = fitness.evaluate(genome)
    hidden, enabled = genome.complexity()
    lines = [
        f"Result: {genome}",
        f"  hidden nodes: {hidden}, enabled connections: {enabled}",
    ]
    for i, (probe, out, target) in enumerate(zip(fitness.probes, outputs, fitness.targets)):
        shown_in = ", ".join(f"{v:g}" for v in probe)
        shown_out = ", ".join(f"{v:.8f} ({round(v)})" for v in out)
        shown_target = ", ".join(f"{v:g}" for v in target)
        lines.append(f"  output {i} [{shown_in}] = {shown_out} | target = {shown_target}")
    return "\n".join(lines)


def stalled_generations(history: list[GenerationRecord]) -> int:
    """Length of the trailing run of generations that share the final best fitness."""
    count = 0
    for rec in reversed(history):
        if rec.best_fitness != history[-1].best_fitness:
            break
        count += 1
    return count


def build_run_notes(history: list[GenerationRecord], champion: Genome) -> str:
    if not history:
        return "No generation history was recorded."

    first = history[0]
    last = history[-1]
    peak = max(history, key=lambda rec: rec.species_count)
    founded = sum(rec.species_founded for rec in history)
    hidden, enabled = champion.complexity()

    lines = ["### Run Notes", ""]
    lines.append(
        f"- Best fitness went from {first.best_fitness:.2f} (generation {first.generation}) "
        f"to {last.best_fitness:.2f} (generation {last.generation})."
    )
    lines.append(
        f"- {founded} species founded; at most {peak.species_count} alive "
        f"(generation {peak.generation}), {last.species_count} at the end."
    )
    lines.append(f"- Highest species innovation counter: {first.max_innovation} -> {last.max_innovation}.")

    stalled = stalled_generations(history)
    if stalled > 1:
        lines.append(f"- Best fitness unchanged over the last {stalled} generations.")
    lines.append(
        f"- Champion: {hidden} hidden nodes, {enabled} of {len(champion.connections)} connections enabled."
    )
    return "\n".join(lines)


def write_markdown_report(
    path: Path,
    cfg: EvolutionConfig,
    history: list[GenerationRecord],
    champion: Genome,
    fitness: TruthTableFitness,
    threshold: float,
    max_iterations: int,
    reached: bool,
) -> None:
    notes = build_run_notes(history, champion)
    outcome = "threshold reached" if reached else "generation cap reached"

    lines = [
        "# NEAT Speciation Run Report",
        "",
        f"## Outcome: {outcome} after {len(history)} generations",
        "",
        "```",
        format_parameters(cfg, threshold, max_iterations),
        "```",
        "",
        "## Champion",
        "",
        "```",
        format_result(champion, fitness),
        "```",
        "",
        notes,
        "",
        "## History",
        "",
        "| generation | species | founded | innovation | best | mean |",
        "| --- | --- | --- | --- | --- | --- |",
    ]
    for rec in history:
        lines.append(
            f"| {rec.generation} | {rec.species_count} | {rec.species_founded} | {rec.max_innovation} "
            f"| {rec.best_fitness:.2f} | {rec.mean_fitness:.2f} |"
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
