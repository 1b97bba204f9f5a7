"""Trained pore-model writer."""

from dataclasses import dataclass
from typing import Iterable, List

from osirishmm.core.distributions import kl_divergence


HEADER = ['5mer', 'ONT_mean', 'ONT_stdv', 'pi_1', 'mean_1', 'stdv_1', 'pi_2', 'mean_2', 'stdv_2']


@dataclass
class MixtureFit:
    """Trained record for one reference position."""
    kmer: str
    ont_mean: float
    ont_std: float
    weight1: float
    mean1: float
    std1: float
    weight2: float
    mean2: float
    std2: float
    position: int = -1

    def as_row(self) -> List[str]:
        values = [self.ont_mean, self.ont_std, self.weight1, self.mean1, self.std1,
                  self.weight2, self.mean2, self.std2]
        return [self.kmer] + [f"{v:g}" for v in values]

    def kl_divergence(self) -> float:
        """KL of the first fitted component from the reference distribution."""
        return kl_divergence(self.mean1, self.std1, self.ont_mean, self.ont_std)


def write_trained_model(fits: Iterable[MixtureFit], filepath: str,
                        include_kl: bool = False) -> int:
    """
    Write one tab-separated row per fitted position, header first.
    The file is written even when there are no fits. Returns rows written.
    """
    header = HEADER + (['KL'] if include_kl else [])
    n = 0
    with open(filepath, 'w') as f:
        f.write('\t'.join(header) + '\n')
        for fit in fits:
            row = fit.as_row()
            if include_kl:
                row.append(f"{fit.kl_divergence():g}")
            f.write('\t'.join(row) + '\n')
            n += 1
    return n
