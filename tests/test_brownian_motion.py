import threading
import pytest
import torch

from mcrates import BrownianMotionLazyInit, TimeGrid


class TestBrownianMotionLazyInit:
    """Tests for the lazily generated Brownian increments."""

    @pytest.fixture
    def grid(self):
        return TimeGrid([0.0, 0.25, 1.0, 2.0])

    def test_identical_tuples_reproduce_increments(self, grid):
        first = BrownianMotionLazyInit(grid, 2, 1000, 7)
        second = BrownianMotionLazyInit(grid, 2, 1000, 7)
        for time_index in range(grid.number_of_time_steps):
            for factor in range(2):
                assert torch.equal(first.get_brownian_increment(time_index, factor).values,
                                   second.get_brownian_increment(time_index, factor).values)

    def test_seed_changes_increments(self, grid):
        first = BrownianMotionLazyInit(grid, 1, 1000, 7)
        second = first.get_clone_with_modified_seed(8)
        assert not torch.equal(first.get_increment(0, 0).values, second.get_increment(0, 0).values)

    def test_increments_scale_with_time_step(self, grid):
        brownian_motion = BrownianMotionLazyInit(grid, 2, 50000, 11)
        for time_index in range(grid.number_of_time_steps):
            dt = grid.get_time_step(time_index)
            for factor in range(2):
                increment = brownian_motion.get_brownian_increment(time_index, factor)
                assert increment.size() == 50000
                assert abs(increment.average().item()) < 4.0 * (dt / 50000) ** 0.5
                assert increment.variance().item() == pytest.approx(dt, rel=0.05)

    def test_factors_are_uncorrelated(self, grid):
        brownian_motion = BrownianMotionLazyInit(grid, 2, 50000, 11)
        w0 = brownian_motion.get_brownian_increment(1, 0)
        w1 = brownian_motion.get_brownian_increment(1, 1)
        correlation = (w0 * w1).average() / (w0.standard_deviation() * w1.standard_deviation())
        assert abs(correlation.item()) < 0.03

    def test_out_of_range_indices_raise(self, grid):
        brownian_motion = BrownianMotionLazyInit(grid, 2, 10, 1)
        with pytest.raises(IndexError):
            brownian_motion.get_brownian_increment(grid.number_of_time_steps, 0)
        with pytest.raises(IndexError):
            brownian_motion.get_brownian_increment(-1, 0)
        with pytest.raises(IndexError):
            brownian_motion.get_brownian_increment(0, 2)

    def test_concurrent_first_access_generates_once(self, grid):
        brownian_motion = BrownianMotionLazyInit(grid, 1, 20000, 5)
        calls = []
        generate = brownian_motion._generate_increments

        def counting_generate():
            calls.append(1)
            return generate()

        brownian_motion._generate_increments = counting_generate

        barrier = threading.Barrier(8)
        results = [None] * 8

        def worker(i):
            barrier.wait()
            results[i] = brownian_motion.get_brownian_increment(2, 0).values

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert all(torch.equal(results[0], result) for result in results)

    def test_equality_and_clones(self, grid):
        brownian_motion = BrownianMotionLazyInit(grid, 1, 100, 3)
        assert brownian_motion == BrownianMotionLazyInit(grid, 1, 100, 3)
        assert hash(brownian_motion) == hash(BrownianMotionLazyInit(grid, 1, 100, 3))
        assert brownian_motion != brownian_motion.get_clone_with_modified_seed(4)

        finer = TimeGrid.from_step(0.0, 2.0, 0.5)
        clone = brownian_motion.get_clone_with_modified_time_discretization(finer)
        assert clone.get_time_discretization() == finer
        assert clone.seed == 3

    def test_invalid_arguments(self, grid):
        with pytest.raises(ValueError):
            BrownianMotionLazyInit(grid, 0, 10, 1)
        with pytest.raises(ValueError):
            BrownianMotionLazyInit(grid, 1, 0, 1)
