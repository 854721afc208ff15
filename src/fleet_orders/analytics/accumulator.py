from dataclasses import dataclass

import numpy as np

MIN_SAMPLES_FOR_VARIANCE = 2


@dataclass
class WelfordAccumulator:
    """
    Running mean and sample variance of stage delays (Welford's method).

    One accumulator per stage; orders are folded in one at a time so a fleet
    rollup never materialises the full list of variances.
    """

    count: int = 0
    mean: float = 0.0
    m2: float = 0.0  # Sum of squares of differences from the current mean

    def update(self, new_value: float) -> None:
        self.count += 1
        delta = new_value - self.mean
        self.mean += delta / self.count
        delta2 = new_value - self.mean
        self.m2 += delta * delta2

    @property
    def variance(self) -> float:
        if self.count < MIN_SAMPLES_FOR_VARIANCE:
            return 0.0
        return self.m2 / (self.count - 1)

    @property
    def std_dev(self) -> float:
        return float(np.sqrt(self.variance))

    @property
    def has_data(self) -> bool:
        return self.count > 0
