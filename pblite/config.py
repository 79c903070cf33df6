from dataclasses import dataclass
import math


@dataclass
class CueConfig:
    n_ori: int = 8                          # number of orientations
    num_bins: int = 25                      # bins for L, a, b
    border: int = 30                        # border pixels
    bg_smooth_sigma: float = 0.1            # bg histogram smoothing sigma
    cg_smooth_sigma: float = 0.05           # cg histogram smoothing sigma
    sigma_tg_filt_sm: float = 2.0           # sigma for small tg filters
    sigma_tg_filt_lg: float = math.sqrt(2.0) * 2.0  # sigma for large tg filters
    r_bg: tuple[int, ...] = (3, 5, 10)
    r_cg: tuple[int, ...] = (5, 10, 20)
    r_tg: tuple[int, ...] = (5, 10, 20)
    n_textons: int = 64
    seed: int = 0

    def __post_init__(self):
        if self.n_ori < 1:
            raise ValueError(f"n_ori must be at least 1, got {self.n_ori}")
        if self.num_bins < 1:
            raise ValueError(f"num_bins must be at least 1, got {self.num_bins}")
        if self.n_textons < 1:
            raise ValueError(f"n_textons must be at least 1, got {self.n_textons}")
        if self.border < 0:
            raise ValueError(f"border must be non-negative, got {self.border}")
        for radius in self.r_bg + self.r_cg + self.r_tg:
            if radius < 0:
                raise ValueError(f"disc radii must be non-negative, got {radius}")
