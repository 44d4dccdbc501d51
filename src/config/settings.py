"""
Configuración central del sistema de perfiles típicos de consumo eléctrico
"""
from pathlib import Path
from typing import Dict
import os

# ============== RUTAS DEL PROYECTO ==============
BASE_DIR = Path(os.environ.get('LOADPROFILES_HOME', Path.cwd()))
DATA_DIR = BASE_DIR / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
OUTPUTS_DIR = BASE_DIR / "outputs"
FIGURES_DIR = OUTPUTS_DIR / "figures"
MODELS_DIR = OUTPUTS_DIR / "models"
LOGS_DIR = BASE_DIR / "logs"


def ensure_dir(path: Path) -> Path:
    """Crea el directorio (y sus padres) si no existe y lo retorna"""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


# ============== CONFIGURACIÓN DEL DATASET ==============

# Dataset de referencia: 50 consumidores, 14 días con medidas cada 30 minutos
N_CONSUMERS = 50
PERIODS_PER_DAY = 48
N_DAYS = 14
SERIES_LENGTH = PERIODS_PER_DAY * N_DAYS  # 672
WEEK_PERIODS = PERIODS_PER_DAY * 7  # 336

ID_COLUMN = 'ID'
TIME_COLUMNS = [f'T{i}' for i in range(1, SERIES_LENGTH + 1)]

# Semilla del generador del dataset sintético
DATASET_SEED = 2018

# ============== CONFIGURACIÓN DE REPRESENTACIONES ==============

# Métodos usados en el análisis. 'func' es el nombre registrado en
# representations.REPRESENTATIONS
REPRESENTATION_METHODS = {
    'seas_profile': {
        'func': 'seas_profile',
        'args': {'freq': PERIODS_PER_DAY, 'func': 'mean'},
        'normalise': True,
        'func_norm': 'z',
        'windowing': False,
        'win_size': None,
        'description': 'Perfil estacional medio diario',
    },
    'gam': {
        'func': 'gam',
        'args': {'freq': (PERIODS_PER_DAY, WEEK_PERIODS)},
        'normalise': True,
        'func_norm': 'z',
        'windowing': False,
        'win_size': None,
        'description': 'Coeficientes de regresión GAM (estacionalidad diaria y semanal)',
    },
    'dft': {
        'func': 'dft',
        'args': {'coef': PERIODS_PER_DAY},
        'normalise': True,
        'func_norm': 'z',
        'windowing': False,
        'win_size': None,
        'description': 'Coeficientes DFT (primeras 48 frecuencias)',
    },
    'feaclip': {
        'func': 'feaclip',
        'args': {},
        'normalise': False,
        'func_norm': None,
        'windowing': True,
        'win_size': PERIODS_PER_DAY,
        'description': 'Features FeaClip por ventana diaria',
    },
}

DEFAULT_METHODS = ['seas_profile', 'gam', 'dft', 'feaclip']

# ============== CONFIGURACIÓN DE CLUSTERING ==============

K_RANGE = range(2, 8)
DISTANCE_METRIC = 'euclidean'
PAM_MAX_ITER = 100

# Índice de validez interno usado para elegir k
PRIMARY_VALIDITY_INDEX = 'davies_bouldin'

# ============== CONFIGURACIÓN DE VALIDACIÓN ==============

DATA_QUALITY_THRESHOLDS = {
    'max_missing_percentage': 0.05,  # 5% máximo de datos faltantes por consumidor
    'max_interpolation_gap': 4,  # huecos de hasta 2 horas se interpolan
    'min_consumers': 3,  # mínimo de consumidores para poder agrupar
}

# ============== CONFIGURACIÓN DE GRÁFICAS ==============

PLOT_STYLE = {
    'seaborn_style': 'whitegrid',
    'facet_width': 5.0,
    'facet_height': 3.2,
    'max_cols': 3,
    'member_color': '#7F7F7F',
    'member_alpha': 0.45,
    'medoid_color': '#D62728',
    'medoid_linewidth': 2.2,
    'dpi': 120,
}

# ============== CONFIGURACIÓN DE LOGGING ==============

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_LEVEL = 'INFO'


# ============== EXPORTAR CONFIGURACIÓN ==============

def get_config() -> Dict:
    """Retorna todas las configuraciones como diccionario"""
    return {
        'paths': {
            'base_dir': str(BASE_DIR),
            'data_dir': str(DATA_DIR),
            'outputs_dir': str(OUTPUTS_DIR),
            'figures_dir': str(FIGURES_DIR),
            'models_dir': str(MODELS_DIR),
            'logs_dir': str(LOGS_DIR),
        },
        'dataset': {
            'n_consumers': N_CONSUMERS,
            'periods_per_day': PERIODS_PER_DAY,
            'n_days': N_DAYS,
            'series_length': SERIES_LENGTH,
            'seed': DATASET_SEED,
        },
        'representations': {
            name: {key: (list(value) if isinstance(value, tuple) else value)
                   for key, value in method.items()}
            for name, method in REPRESENTATION_METHODS.items()
        },
        'clustering': {
            'k_range': list(K_RANGE),
            'metric': DISTANCE_METRIC,
            'max_iter': PAM_MAX_ITER,
            'validity_index': PRIMARY_VALIDITY_INDEX,
        },
        'quality': DATA_QUALITY_THRESHOLDS,
        'plots': PLOT_STYLE,
    }


if __name__ == "__main__":
    config = get_config()
    print("✓ Configuración cargada exitosamente")
    print(f"✓ Directorio base: {config['paths']['base_dir']}")
    print(f"✓ Métodos de representación: {list(config['representations'].keys())}")
