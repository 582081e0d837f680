import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed

import numpy as np
from loguru import logger

from ..config import TrainingConfig
from .fitness import evaluate_genome
from .history import GenerationReport, PopulationReplaySnapshot
from .neural_network import freeze_genome, random_genome


class Individual:
    # Represents one individual in the genetic algorithm population

    def __init__(self, genome):
        self.genome = genome
        self.fitness = 0.0
        self.evaluated = False
        self.steps = 0.0
        self.food_eaten = 0.0
        self.status = None
        self.seed = None

    def apply_result(self, result):
        self.fitness = result.fitness
        self.steps = result.steps
        self.food_eaten = result.food_eaten
        self.status = result.status
        self.seed = result.seed
        self.evaluated = True

    def copy(self):
        # Value copy; the genome is read-only so it can be shared
        new_individual = Individual(self.genome)
        new_individual.fitness = self.fitness
        new_individual.evaluated = self.evaluated
        new_individual.steps = self.steps
        new_individual.food_eaten = self.food_eaten
        new_individual.status = self.status
        new_individual.seed = self.seed
        return new_individual


def selection_wheel(fitnesses):
    """Cumulative fitness distribution; negative fitness counts as zero"""
    return np.cumsum(np.clip(np.asarray(fitnesses, dtype=np.float64), 0.0, None))


def roulette_wheel_select(cumulative, rng):
    # Index drawn proportionally to fitness share
    total = cumulative[-1]
    if total <= 0:
        # Every individual has zero mass: uniform selection
        return int(rng.integers(len(cumulative)))

    pick = rng.random() * total
    index = int(np.searchsorted(cumulative, pick, side="right"))
    if index >= len(cumulative):
        # Rounding put pick on the total: take the last individual with mass
        index = int(np.searchsorted(cumulative, total, side="left"))
    return index


def single_point_crossover(genome1, genome2, rng):
    crossover_point = int(rng.integers(1, len(genome1)))
    return freeze_genome(np.concatenate([genome1[:crossover_point], genome2[crossover_point:]]))


def sbx_crossover(genome1, genome2, rng, eta=100.0):
    # Simulated Binary Crossover (SBX)
    # eta: distribution index (higher = more similar to parents)
    u = rng.random(len(genome1))
    beta = np.where(
        u <= 0.5,
        (2 * u) ** (1.0 / (eta + 1)),
        (1.0 / (2 * (1 - u))) ** (1.0 / (eta + 1)),
    )
    return freeze_genome(0.5 * ((1 + beta) * genome1 + (1 - beta) * genome2))


class GeneticAlgorithm:
    """
    Generational genetic algorithm evolving snake-playing networks.

    Each generation: evaluate every individual in a worker pool, wait for all
    of them, then build the next population with roulette wheel selection,
    crossover, per-weight gaussian mutation and a single elite carried over
    unchanged in slot 0.
    """

    def __init__(self, config=None, progress_callback=None, generation_callback=None):
        # Args:
        #   config: TrainingConfig (defaults: 500 individuals, 2000 generations)
        #   progress_callback: called as (completed, total) while a generation is evaluated
        #   generation_callback: called with a GenerationReport after each evaluation
        self.config = config or TrainingConfig()
        evolution = self.config.evolution

        self.population_size = evolution.population_size
        self.generations = evolution.generations
        self.crossover_rate = evolution.crossover_rate
        self.mutation_rate = evolution.mutation_rate
        self.mutation_range = evolution.mutation_range
        self.crossover_type = evolution.crossover_type
        self.sbx_eta = evolution.sbx_eta
        self.num_workers = evolution.workers
        self.topology = self.config.network.topology

        self.progress_callback = progress_callback
        self.generation_callback = generation_callback

        # Breeding and game randomness are seeded independently
        self.seed_sequence = np.random.SeedSequence(evolution.seed)
        self.rng = np.random.default_rng(self.seed_sequence)
        if evolution.evaluation_seed is not None:
            self.evaluation_seed = evolution.evaluation_seed
        else:
            self.evaluation_seed = np.random.SeedSequence().entropy

        self.population = [
            Individual(random_genome(self.topology, self.rng, evolution.gene_min, evolution.gene_max))
            for _ in range(self.population_size)
        ]

        # Statistics tracking
        self.generation = 0
        self.history = []
        self.best_fitness_history = []
        self.avg_fitness_history = []
        self.best_score_history = []
        self.avg_score_history = []

        logger.info(
            "[GeneticAlgorithm] Init | population={}, generations={}, topology={}, workers={}, executor={}",
            self.population_size,
            self.generations,
            list(self.topology),
            self.num_workers,
            evolution.executor,
        )

    @property
    def done(self):
        return self.generation >= self.generations

    def make_executor(self):
        if self.config.evolution.executor == "process":
            return ProcessPoolExecutor(max_workers=self.num_workers)
        return ThreadPoolExecutor(max_workers=self.num_workers)

    def evaluation_seed_for(self, generation, index):
        # Same (evaluation_seed, generation, index) always gives the same game
        sequence = np.random.SeedSequence([self.evaluation_seed, generation, index])
        return int(sequence.generate_state(1)[0])

    def _run_evaluations(self, executor, pending):
        futures = {
            executor.submit(
                evaluate_genome,
                self.population[i].genome,
                self.evaluation_seed_for(self.generation, i),
                self.config,
            ): i
            for i in pending
        }

        results = {}
        completed = 0
        for future in as_completed(futures):
            results[futures[future]] = future.result()
            completed += 1
            if self.progress_callback:
                self.progress_callback(completed, len(futures))
        return results

    def evaluate_population(self, executor=None):
        """Evaluate every individual that has no fitness yet.

        The elite carried over from the previous generation keeps its fitness.
        Results are written into the population only once every task has
        finished.
        """
        start_time = time.time()
        pending = [i for i, individual in enumerate(self.population) if not individual.evaluated]

        if executor is None:
            with self.make_executor() as own_executor:
                results = self._run_evaluations(own_executor, pending)
        else:
            results = self._run_evaluations(executor, pending)

        for i, result in results.items():
            self.population[i].apply_result(result)

        eval_time = time.time() - start_time
        logger.debug(
            "[GeneticAlgorithm] Gen {} | evaluated {} individuals in {:.2f}s",
            self.generation,
            len(pending),
            eval_time,
        )
        return self._record_generation(eval_time)

    def best_index(self):
        # np.argmax keeps the lowest index among equal fitness values
        return int(np.argmax([individual.fitness for individual in self.population]))

    def get_best_individual(self):
        return self.population[self.best_index()]

    def _record_generation(self, elapsed):
        fitnesses = np.array([individual.fitness for individual in self.population])
        scores = np.array([individual.food_eaten for individual in self.population])
        best = self.get_best_individual()

        report = GenerationReport(
            generation=self.generation,
            best_fitness=float(best.fitness),
            avg_fitness=float(np.mean(fitnesses)),
            best_food_eaten=float(best.food_eaten),
            avg_food_eaten=float(np.mean(scores)),
            best_steps=float(best.steps),
            elapsed=elapsed,
        )
        self.history.append(
            PopulationReplaySnapshot(
                generation=self.generation,
                genome=best.genome,
                seed=best.seed,
                fitness=float(best.fitness),
                topology=self.topology,
            )
        )

        self.best_fitness_history.append(report.best_fitness)
        self.avg_fitness_history.append(report.avg_fitness)
        self.best_score_history.append(report.best_food_eaten)
        self.avg_score_history.append(report.avg_food_eaten)

        if self.generation % self.config.evolution.log_interval == 0 or self.generation == self.generations - 1:
            logger.info(
                "[GeneticAlgorithm] Gen {} | best={:.1f} avg={:.1f} food={:.1f} ({:.1f}s)",
                report.generation,
                report.best_fitness,
                report.avg_fitness,
                report.best_food_eaten,
                elapsed,
            )
        return report

    def roulette_wheel_selection(self, cumulative, rng):
        # Select an individual using roulette wheel selection
        return self.population[roulette_wheel_select(cumulative, rng)]

    def crossover(self, genome1, genome2, rng):
        # One child per call; without crossover the child is a copy of the first parent
        if rng.random() >= self.crossover_rate:
            return genome1

        crossover_type = self.crossover_type
        if crossover_type == "mixed":
            crossover_type = "sbx" if rng.random() < 0.5 else "single_point"

        if crossover_type == "sbx":
            return sbx_crossover(genome1, genome2, rng, self.sbx_eta)
        return single_point_crossover(genome1, genome2, rng)

    def mutate(self, genome, rng):
        # Each weight mutates independently with probability mutation_rate
        mask = rng.random(len(genome)) < self.mutation_rate
        noise = rng.normal(0.0, self.mutation_range, size=len(genome))
        return freeze_genome(np.where(mask, genome + noise, genome))

    def evolve_generation(self):
        """Create the next generation from the evaluated one"""
        cumulative = selection_wheel([individual.fitness for individual in self.population])
        new_population = [self.get_best_individual().copy()]

        # One generator per offspring slot keeps breeding reproducible for a seed
        for child_seed in self.seed_sequence.spawn(self.population_size - 1):
            rng = np.random.default_rng(child_seed)
            parent1 = self.roulette_wheel_selection(cumulative, rng)
            parent2 = self.roulette_wheel_selection(cumulative, rng)

            child = self.crossover(parent1.genome, parent2.genome, rng)
            child = self.mutate(child, rng)
            new_population.append(Individual(child))

        self.population = new_population
        self.generation += 1

    def step(self, executor=None):
        """Evaluate the current generation and breed the next one"""
        report = self.evaluate_population(executor)
        if self.generation_callback:
            self.generation_callback(report)

        # The last generation is evaluated but not bred from
        if self.generation < self.generations - 1:
            self.evolve_generation()
        else:
            self.generation += 1
        return report

    def run(self):
        """Run all remaining generations with a single worker pool"""
        start_time = time.time()
        with self.make_executor() as executor:
            while not self.done:
                self.step(executor)

        logger.info(
            "[GeneticAlgorithm] Done | generations={}, best={:.1f} ({:.1f}s)",
            self.generations,
            self.best_fitness_history[-1],
            time.time() - start_time,
        )
        return self.history

    def snapshot(self, generation):
        """Best genome of an evaluated generation, for replay"""
        if not 0 <= generation < len(self.history):
            raise IndexError(f"generation {generation} has not been evaluated (have {len(self.history)})")
        return self.history[generation]

    def late_snapshots(self, fraction=None):
        # Snapshots from a late generation onwards, 95% of the way by default
        if fraction is None:
            fraction = self.config.evolution.late_generation_fraction
        start = min(int(fraction * len(self.history)), max(len(self.history) - 1, 0))
        return self.history[start:]
