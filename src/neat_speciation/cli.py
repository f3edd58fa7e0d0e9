from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .config import DistanceConfig, EvolutionConfig, MutationConfig
from .evolution import Population
from .fitness import xor_fitness
from .reporting import format_parameters, format_result, write_markdown_report


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Evolve a XOR network with speciated NEAT")
    p.add_argument("--pop-size", type=int, default=200)
    p.add_argument("--inputs", type=int, default=2)
    p.add_argument("--outputs", type=int, default=1)
    p.add_argument("--max-hidden", type=int, default=100)
    p.add_argument("--max-stagnation", type=int, default=20)

    p.add_argument("--c1", type=float, default=2.0)
    p.add_argument("--c2", type=float, default=2.0)
    p.add_argument("--c3", type=float, default=0.4)
    p.add_argument("--distance-threshold", type=float, default=0.15)
    p.add_argument("--mutation-rate", type=float, default=20.0, help="Mutation chance per child, in percent")

    p.add_argument("--threshold", type=float, default=90.0)
    p.add_argument("--max-iterations", type=int, default=20000)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    p.add_argument("--report", type=str, default=None, help="Write a markdown run report to this path")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = EvolutionConfig(
        pop_size=args.pop_size,
        input_size=args.inputs,
        output_size=args.outputs,
        max_hidden=args.max_hidden,
        max_stagnation=args.max_stagnation,
        seed=args.seed,
        distance=DistanceConfig(
            c1=args.c1,
            c2=args.c2,
            c3=args.c3,
            threshold=args.distance_threshold,
        ),
        mutation=MutationConfig(rate_percent=args.mutation_rate),
    )
    fitness = xor_fitness()
    if cfg.input_size != fitness.probes.shape[1] or cfg.output_size != fitness.targets.shape[1]:
        raise SystemExit(
            f"The XOR task needs {fitness.probes.shape[1]} inputs and {fitness.targets.shape[1]} output"
        )

    print(format_parameters(cfg, args.threshold, args.max_iterations))
    print()
    print(f"Starting from {cfg.pop_size} empty genomes in a single species")

    population = Population(cfg, fitness)
    champion = population.learn(args.threshold, args.max_iterations)

    if population.reached_threshold:
        print(f"Threshold {args.threshold} reached in {population.generation} generations")
    else:
        print(f"Maximum number of iterations ({args.max_iterations}) reached")
    print(format_result(champion, fitness))

    if args.report:
        report_path = Path(args.report).resolve()
        write_markdown_report(
            path=report_path,
            cfg=cfg,
            history=population.history,
            champion=champion,
            fitness=fitness,
            threshold=args.threshold,
            max_iterations=args.max_iterations,
            reached=population.reached_threshold,
        )
        print(f"report: {report_path}")


if __name__ == "__main__":
    main()
