"""
Genetic algorithm tests: selection, variation operators, elitism,
generation bookkeeping and reproducibility across worker counts.
"""

import numpy as np
import pytest

from evosnake.ai.genetic_algorithm import (
    GeneticAlgorithm,
    Individual,
    roulette_wheel_select,
    sbx_crossover,
    selection_wheel,
    single_point_crossover,
)
from evosnake.ai.neural_network import freeze_genome, genome_size
from evosnake.config import DEFAULT_TOPOLOGY, build_config
from evosnake.game.snake_game import GameStatus


class TestRouletteWheel:
    def test_zero_fitness_is_never_selected(self, rng):
        cumulative = selection_wheel([0.0, 5.0, 0.0, 3.0])

        picks = {roulette_wheel_select(cumulative, rng) for _ in range(2000)}

        assert picks == {1, 3}

    def test_selection_is_proportional(self, rng):
        cumulative = selection_wheel([1.0, 3.0])

        picks = [roulette_wheel_select(cumulative, rng) for _ in range(20000)]

        assert np.mean(picks) == pytest.approx(0.75, abs=0.02)

    def test_all_zero_fitness_is_uniform(self, rng):
        cumulative = selection_wheel([0.0] * 5)

        picks = [roulette_wheel_select(cumulative, rng) for _ in range(5000)]

        assert set(picks) == set(range(5))
        assert np.bincount(picks).min() > 800

    def test_negative_fitness_counts_as_zero(self):
        np.testing.assert_array_equal(selection_wheel([-5.0, 2.0, -1.0, 1.0]), [0.0, 2.0, 2.0, 3.0])


class TestVariationOperators:
    def test_single_point_crossover_is_prefix_and_suffix(self, rng):
        parent1 = freeze_genome(np.zeros(50))
        parent2 = freeze_genome(np.ones(50))

        for _ in range(100):
            child = single_point_crossover(parent1, parent2, rng)
            point = int(np.argmax(child))
            assert 1 <= point < 50
            assert np.all(child[:point] == 0.0)
            assert np.all(child[point:] == 1.0)
            assert not child.flags.writeable

    def test_sbx_child_stays_near_parents(self, rng):
        parent1 = freeze_genome(np.full(200, -0.5))
        parent2 = freeze_genome(np.full(200, 0.5))

        child = sbx_crossover(parent1, parent2, rng, eta=100.0)

        assert child.shape == (200,)
        assert np.all(np.abs(child) < 1.0)

    def test_no_crossover_copies_first_parent(self, small_config):
        config = small_config.model_copy(
            update={"evolution": small_config.evolution.model_copy(update={"crossover_rate": 0.0})}
        )
        ga = GeneticAlgorithm(config)
        parent1, parent2 = ga.population[0].genome, ga.population[1].genome

        child = ga.crossover(parent1, parent2, np.random.default_rng(0))

        np.testing.assert_array_equal(child, parent1)

    def test_zero_mutation_rate_keeps_genome(self):
        ga = GeneticAlgorithm(build_config(population_size=4, generations=1, mutation_rate=0.0, seed=1))
        genome = ga.population[0].genome

        np.testing.assert_array_equal(ga.mutate(genome, np.random.default_rng(0)), genome)

    def test_full_mutation_rate_changes_every_weight(self):
        ga = GeneticAlgorithm(build_config(population_size=4, generations=1, mutation_rate=1.0, seed=1))
        genome = ga.population[0].genome

        mutated = ga.mutate(genome, np.random.default_rng(0))

        assert mutated.shape == genome.shape
        assert np.all(mutated != genome)


class TestInitialPopulation:
    def test_population_shape(self, small_config):
        ga = GeneticAlgorithm(small_config)

        assert len(ga.population) == 12
        assert ga.generation == 0
        assert all(ind.genome.shape == (genome_size(DEFAULT_TOPOLOGY),) for ind in ga.population)
        assert all(not ind.evaluated for ind in ga.population)

    def test_same_seed_same_population(self, small_config):
        first = GeneticAlgorithm(small_config)
        second = GeneticAlgorithm(small_config)

        for a, b in zip(first.population, second.population):
            np.testing.assert_array_equal(a.genome, b.genome)

    def test_individual_copy_shares_read_only_genome(self, small_config):
        individual = GeneticAlgorithm(small_config).population[0]
        individual.fitness = 12.5

        copy = individual.copy()

        assert copy is not individual
        assert copy.genome is individual.genome
        assert copy.fitness == 12.5


class TestGenerationStep:
    def test_elite_is_carried_unchanged(self, small_config):
        ga = GeneticAlgorithm(small_config)
        ga.evaluate_population()
        elite = ga.get_best_individual()
        elite_genome, elite_fitness, elite_status = elite.genome, elite.fitness, elite.status

        ga.evolve_generation()

        assert len(ga.population) == 12
        assert ga.generation == 1
        np.testing.assert_array_equal(ga.population[0].genome, elite_genome)
        assert ga.population[0].fitness == elite_fitness
        assert ga.population[0].status is elite_status is not None
        assert ga.population[0].evaluated
        assert all(not ind.evaluated for ind in ga.population[1:])

    def test_elite_is_not_reevaluated(self, small_config):
        totals = []
        ga = GeneticAlgorithm(small_config, progress_callback=lambda completed, total: totals.append(total))

        ga.step()
        ga.step()

        assert set(totals[:12]) == {12}
        assert set(totals[12:]) == {11}

    def test_callbacks_fire_once_per_generation(self, small_config):
        reports = []
        ga = GeneticAlgorithm(small_config, generation_callback=reports.append)

        ga.run()

        assert [report.generation for report in reports] == [0, 1, 2, 3]
        assert [report.best_food_eaten for report in reports] == ga.best_score_history
        assert [report.avg_food_eaten for report in reports] == ga.avg_score_history
        assert ga.done

    def test_last_generation_is_not_bred(self, small_config):
        ga = GeneticAlgorithm(small_config)
        ga.run()

        # The final population is the one that was evaluated last
        assert all(ind.evaluated for ind in ga.population)
        assert ga.generation == 4


class TestTrainingRun:
    def test_best_fitness_never_decreases(self, small_config):
        ga = GeneticAlgorithm(small_config)
        ga.run()

        assert len(ga.best_fitness_history) == 4
        assert all(b >= a for a, b in zip(ga.best_fitness_history, ga.best_fitness_history[1:]))
        assert all(
            best >= avg for best, avg in zip(ga.best_fitness_history, ga.avg_fitness_history)
        )

    def test_history_has_one_snapshot_per_generation(self, small_config):
        ga = GeneticAlgorithm(small_config)
        history = ga.run()

        assert [snapshot.generation for snapshot in history] == [0, 1, 2, 3]
        assert [snapshot.fitness for snapshot in history] == ga.best_fitness_history

    def test_snapshot_lookup(self, small_config):
        ga = GeneticAlgorithm(small_config)
        ga.run()

        snapshot = ga.snapshot(2)
        assert snapshot.generation == 2
        assert snapshot.build_network().get_genome().shape == (genome_size(DEFAULT_TOPOLOGY),)

        with pytest.raises(IndexError):
            ga.snapshot(4)
        with pytest.raises(IndexError):
            ga.snapshot(-1)

    def test_late_snapshots(self, small_config):
        ga = GeneticAlgorithm(small_config)
        ga.run()

        assert [s.generation for s in ga.late_snapshots()] == [3]
        assert [s.generation for s in ga.late_snapshots(0.5)] == [2, 3]
        assert len(ga.late_snapshots(0.0)) == 4

    def test_snapshot_replays_its_evaluation(self, small_config):
        """The best network replayed on its evaluation seed scores its recorded fitness."""
        from evosnake.ai.fitness import evaluate_genome

        ga = GeneticAlgorithm(small_config)
        ga.run()
        snapshot = ga.snapshot(3)

        assert evaluate_genome(snapshot.genome, snapshot.seed, small_config).fitness == snapshot.fitness

    def test_same_seeds_reproduce_the_run(self, small_config):
        first = GeneticAlgorithm(small_config)
        first.run()
        second = GeneticAlgorithm(small_config)
        second.run()

        assert first.best_fitness_history == second.best_fitness_history
        assert first.avg_fitness_history == second.avg_fitness_history

    @pytest.mark.parametrize("workers", [1, 4])
    def test_worker_count_does_not_change_results(self, small_config, workers):
        reference = GeneticAlgorithm(small_config)
        reference.run()

        config = small_config.model_copy(
            update={"evolution": small_config.evolution.model_copy(update={"num_workers": workers})}
        )
        ga = GeneticAlgorithm(config)
        ga.run()

        assert ga.num_workers == workers
        assert ga.best_fitness_history == reference.best_fitness_history
        assert ga.avg_fitness_history == reference.avg_fitness_history
        for a, b in zip(ga.population, reference.population):
            np.testing.assert_array_equal(a.genome, b.genome)

    def test_process_pool_matches_thread_pool(self, small_config):
        """Genomes and config survive pickling to worker processes unchanged."""
        threaded = GeneticAlgorithm(small_config)
        threaded.run()

        config = small_config.model_copy(
            update={"evolution": small_config.evolution.model_copy(update={"executor": "process"})}
        )
        ga = GeneticAlgorithm(config)
        ga.run()

        assert ga.best_fitness_history == threaded.best_fitness_history
        assert ga.avg_fitness_history == threaded.avg_fitness_history
        for a, b in zip(ga.population, threaded.population):
            np.testing.assert_array_equal(a.genome, b.genome)
            assert a.status is b.status


def test_individual_apply_result(small_config):
    from evosnake.ai.fitness import evaluate_genome

    individual = Individual(GeneticAlgorithm(small_config).population[0].genome)
    result = evaluate_genome(individual.genome, 9, small_config)

    individual.apply_result(result)

    assert individual.evaluated
    assert individual.fitness == result.fitness
    assert individual.seed == 9
    assert individual.status is result.status
    assert individual.status is not GameStatus.RUNNING
