# Headless Training Script for evosnake
# Evolves snake-playing networks with the genetic algorithm and reports
# progress once per generation. Runs without rendering for maximum speed.

import argparse
import sys
import time

import matplotlib.pyplot as plt

from ..ai.genetic_algorithm import GeneticAlgorithm
from ..config import build_config
from ..errors import InvalidConfiguration
from ..game.snake_game import GameStatus

STATUS_COLORS = {
    GameStatus.DEAD: 'red',
    GameStatus.TIMED_OUT: 'orange',
    GameStatus.WON: 'green',
}


def train_evolution(config, quiet=False):
    # Train the genetic algorithm for config.evolution.generations generations
    # Args:
    #   config: TrainingConfig
    #   quiet: Minimal output mode (one line per generation, no header)
    # Returns the GeneticAlgorithm, whose history holds every generation's best genome
    evolution = config.evolution

    def progress_callback(completed, total):
        if completed % max(1, total // 4) == 0:
            print(f"Gen {ga.generation}: {completed}/{total}", end='\r')

    def generation_callback(report):
        if quiet and report.generation % evolution.log_interval != 0:
            return
        print(f"Gen {report.generation:4d}: Best={report.best_fitness:8.1f} Avg={report.avg_fitness:8.1f} "
              f"Food={report.best_food_eaten:4.1f} Steps={report.best_steps:5.0f} ({report.elapsed:4.1f}s)")

    ga = GeneticAlgorithm(config, progress_callback=progress_callback, generation_callback=generation_callback)

    if not quiet:
        print("Genetic Algorithm Training")
        print(f"Population: {evolution.population_size}, Generations: {evolution.generations}, "
              f"Workers: {ga.num_workers} ({evolution.executor})")
        print(f"Topology: {list(config.network.topology)}, Board: {config.game.width}x{config.game.height}")
        print("=" * 60)

    start_time = time.time()
    ga.run()
    elapsed_time = time.time() - start_time

    if not quiet:
        print(f"\nTraining completed in {elapsed_time:.1f} seconds")
        print(f"Final best fitness: {ga.best_fitness_history[-1]:.1f}")
        print(f"Final best food: {ga.best_score_history[-1]:.1f}")
        print(f"Improvement: {ga.best_fitness_history[-1] - ga.best_fitness_history[0]:.1f} fitness")

    return ga


def plot_evolution_progress(ga):
    # Plot the evolution progress over generations
    plt.figure(figsize=(15, 5))

    # Plot fitness evolution
    plt.subplot(1, 3, 1)
    plt.plot(ga.best_fitness_history, label='Best Fitness', color='red', linewidth=2)
    plt.plot(ga.avg_fitness_history, label='Average Fitness', color='blue', linewidth=2)
    plt.title('Fitness Evolution')
    plt.xlabel('Generation')
    plt.ylabel('Fitness')
    plt.legend()
    plt.grid(True, alpha=0.3)

    # Plot food evolution
    plt.subplot(1, 3, 2)
    plt.plot(ga.best_score_history, label='Best Food', color='green', linewidth=2)
    plt.plot(ga.avg_score_history, label='Average Food', color='orange', linewidth=2)
    plt.title('Food Evolution')
    plt.xlabel('Generation')
    plt.ylabel('Food Eaten')
    plt.legend()
    plt.grid(True, alpha=0.3)

    # Survival against food for the last generation, one marker per way the games ended
    plt.subplot(1, 3, 3)
    for status, color in STATUS_COLORS.items():
        members = [ind for ind in ga.population if ind.status is status]
        if members:
            plt.scatter([ind.steps for ind in members], [ind.food_eaten for ind in members],
                        s=12, alpha=0.6, color=color, label=f'{status.value} ({len(members)})')
    plt.title(f'Steps vs Food - Generation {ga.generation - 1}')
    plt.xlabel('Steps Survived')
    plt.ylabel('Food Eaten')
    plt.legend()
    plt.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.show()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Evolve neural networks that play Snake.")
    parser.add_argument("--population", type=int, default=500, help="individuals per generation")
    parser.add_argument("--generations", type=int, default=2000, help="number of generations")
    parser.add_argument("--workers", type=int, default=None, help="evaluation workers (default: by CPU count)")
    parser.add_argument("--executor", choices=["thread", "process"], default="thread")
    parser.add_argument("--crossover-rate", type=float, default=0.9)
    parser.add_argument("--crossover-type", choices=["single_point", "sbx", "mixed"], default="single_point")
    parser.add_argument("--mutation-rate", type=float, default=0.3)
    parser.add_argument("--mutation-range", type=float, default=0.3)
    parser.add_argument("--board", type=int, default=10, help="board width and height")
    parser.add_argument("--games", type=int, default=1, help="games per fitness evaluation")
    parser.add_argument("--seed", type=int, default=None, help="seed of the evolution RNG")
    parser.add_argument("--evaluation-seed", type=int, default=None, help="seed of the game RNGs")
    parser.add_argument("--quiet", action="store_true", help="minimal output")
    parser.add_argument("--plot", action="store_true", help="plot fitness history when done")
    parser.add_argument("--replay", action="store_true", help="replay late generations in a window when done")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    try:
        config = build_config(
            population_size=args.population,
            generations=args.generations,
            num_workers=args.workers,
            executor=args.executor,
            crossover_rate=args.crossover_rate,
            crossover_type=args.crossover_type,
            mutation_rate=args.mutation_rate,
            mutation_range=args.mutation_range,
            width=args.board,
            height=args.board,
            games_per_evaluation=args.games,
            seed=args.seed,
            evaluation_seed=args.evaluation_seed,
        )
    except InvalidConfiguration as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        ga = train_evolution(config, quiet=args.quiet)
    except KeyboardInterrupt:
        print("\n\nTraining interrupted by user.")
        sys.exit(1)

    if args.plot:
        plot_evolution_progress(ga)

    if args.replay:
        from ..game.replay import replay_snapshots

        print("Replaying late generations: RIGHT = next generation, ESC = quit")
        replay_snapshots(ga.late_snapshots(), config.game)


if __name__ == "__main__":
    main()
