"""
Script para ejecutar el análisis completo de perfiles típicos de consumo
Ejecuta desde la línea de comandos: python scripts/run_clustering.py [--methods gam dft] [--k 4]
"""
import sys
from pathlib import Path

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from pipeline.orchestrator import main


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
