"""
Representaciones de Series de Tiempo de Consumo

Transformaciones deterministas que resumen cada serie de consumo en un vector
de longitud fija: perfil estacional, coeficientes GAM, DFT, FeaClip y PAA,
más normalización y aplicación por ventanas.
"""

from .normalization import (
    norm_z, norm_min_max, norm_z_params, norm_min_max_params,
    denorm_z, denorm_min_max, NORMALIZATIONS,
)
from .seasonal import repr_seas_profile
from .gam import repr_gam, gam_coefficient_count
from .dft import repr_dft
from .feaclip import repr_feaclip, clipping, run_lengths, FEACLIP_FEATURES
from .paa import repr_paa
from .windowing import repr_windowing
from .matrix import repr_matrix, representation_length, get_representation, REPRESENTATIONS

__all__ = [
    'norm_z',
    'norm_min_max',
    'norm_z_params',
    'norm_min_max_params',
    'denorm_z',
    'denorm_min_max',
    'NORMALIZATIONS',
    'repr_seas_profile',
    'repr_gam',
    'gam_coefficient_count',
    'repr_dft',
    'repr_feaclip',
    'clipping',
    'run_lengths',
    'FEACLIP_FEATURES',
    'repr_paa',
    'repr_windowing',
    'repr_matrix',
    'representation_length',
    'get_representation',
    'REPRESENTATIONS',
]
