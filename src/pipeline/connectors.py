"""
Conectores para lectura de matrices de consumo
Soporta: dataset de referencia incorporado y archivos CSV (formato ancho o largo)
"""
import pandas as pd
import logging
from pathlib import Path
from typing import Optional, Dict, Union
from datetime import datetime
from abc import ABC, abstractmethod

from config.settings import DATASET_SEED, ID_COLUMN
from pipeline.dataset import generate_elec_load

logger = logging.getLogger(__name__)


class DataConnector(ABC):
    """Clase base abstracta para todos los conectores de datos"""

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or {}
        self.last_read_timestamp = None

    @abstractmethod
    def read_data(self, **kwargs) -> pd.DataFrame:
        """Retorna una matriz consumidores × periodos indexada por ID"""
        pass

    @abstractmethod
    def validate_connection(self) -> bool:
        """Valida que la fuente de datos esté disponible"""
        pass

    def log_read(self, shape, source: str):
        """Registra información sobre la lectura de datos"""
        self.last_read_timestamp = datetime.now()
        logger.info(f"✓ Datos leídos desde {source}: {shape[0]} consumidores × {shape[1]} periodos")


class BundledElecLoadConnector(DataConnector):
    """Conector al dataset de referencia elec_load (50 consumidores × 672 periodos)"""

    def validate_connection(self) -> bool:
        return True

    def read_data(self, **kwargs) -> pd.DataFrame:
        params = {'seed': self.config.get('seed', DATASET_SEED)}
        for key in ('n_consumers', 'n_days', 'periods_per_day'):
            if key in self.config:
                params[key] = self.config[key]
        params.update(kwargs)

        df = generate_elec_load(**params)
        self.log_read(df.shape, 'dataset elec_load')
        return df


class CSVConnector(DataConnector):
    """Conector para archivos CSV locales"""

    def __init__(self, config: Dict):
        super().__init__(config)
        self.file_path = Path(config.get('path', ''))

    def validate_connection(self) -> bool:
        """Valida que el archivo CSV existe"""
        if self.file_path.is_file():
            logger.info(f"✓ Archivo CSV encontrado: {self.file_path}")
            return True
        logger.error(f"✗ Archivo CSV no encontrado: {self.file_path}")
        return False

    def read_csv(self, **kwargs) -> pd.DataFrame:
        if not self.validate_connection():
            raise FileNotFoundError(f"Archivo no encontrado: {self.file_path}")
        return pd.read_csv(self.file_path, **kwargs)

    def read_data(self, **kwargs) -> pd.DataFrame:
        """Lee el CSV tal como está"""
        df = self.read_csv(**kwargs)
        self.log_read(df.shape, str(self.file_path))
        return df


class LoadMatrixCSVConnector(CSVConnector):
    """
    Conector para matrices de consumo en CSV

    Formatos soportados (config['layout']):
    - 'wide' (por defecto): una fila por consumidor, columna ID + una columna por periodo
    - 'long': una fila por medida, columnas ID, timestamp y valor
      (nombres configurables con 'time_column' y 'value_column')
    """

    def read_data(self, **kwargs) -> pd.DataFrame:
        df = self.read_csv(**kwargs)
        id_column = self.config.get('id_column', ID_COLUMN)

        if id_column not in df.columns:
            raise ValueError(f"El archivo {self.file_path} no contiene la columna '{id_column}'")

        layout = self.config.get('layout', 'wide')
        if layout == 'wide':
            matrix = df.set_index(id_column)
        elif layout == 'long':
            matrix = self._pivot_long(df, id_column)
        else:
            raise ValueError(f"Formato no soportado: {layout}")

        matrix.index = matrix.index.astype(str)
        matrix.index.name = ID_COLUMN
        matrix.columns = [str(col) for col in matrix.columns]

        self.log_read(matrix.shape, str(self.file_path))
        return matrix

    def _pivot_long(self, df: pd.DataFrame, id_column: str) -> pd.DataFrame:
        time_column = self.config.get('time_column', 'timestamp')
        value_column = self.config.get('value_column', 'value')

        missing = [col for col in (time_column, value_column) if col not in df.columns]
        if missing:
            raise ValueError(f"Columnas faltantes para formato largo: {missing}")

        df = df.copy()
        df[time_column] = pd.to_datetime(df[time_column], errors='coerce')
        df = df.dropna(subset=[time_column]).sort_values([id_column, time_column])

        # Posición de cada medida dentro de la serie de su consumidor
        df['_period'] = df.groupby(id_column).cumcount() + 1
        matrix = df.pivot(index=id_column, columns='_period', values=value_column)
        matrix.columns = [f'T{period}' for period in matrix.columns]

        logger.info(f"   Formato largo convertido a matriz {matrix.shape}")
        return matrix


class DataConnectorFactory:
    """Factory para crear conectores según la fuente de datos"""

    @staticmethod
    def create_connector(source: Optional[Union[str, Path]] = None,
                         config: Optional[Dict] = None) -> DataConnector:
        """
        Crea un conector según la fuente

        Args:
            source: None o 'elec_load' para el dataset de referencia, o ruta a un CSV
            config: Configuración adicional del conector

        Returns:
            Instancia del conector apropiado
        """
        config = dict(config or {})

        if source is None or str(source) == 'elec_load':
            logger.info("✓ Creando conector del dataset de referencia elec_load")
            return BundledElecLoadConnector(config)

        config['path'] = str(source)
        logger.info(f"✓ Creando conector CSV para: {source}")
        return LoadMatrixCSVConnector(config)


# ============== FUNCIONES DE UTILIDAD ==============

def load_consumption_matrix(source: Optional[Union[str, Path]] = None, **config) -> pd.DataFrame:
    """
    Carga una matriz consumidores × periodos

    Args:
        source: None/'elec_load' para el dataset de referencia o ruta a un CSV
        **config: Opciones del conector (layout, id_column, seed, ...)

    Returns:
        DataFrame indexado por ID
    """
    connector = DataConnectorFactory.create_connector(source, config)
    return connector.read_data()
