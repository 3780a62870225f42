"""Read the upstream cell table (embedding + cluster label per cell).

The pipeline starts after QC, normalization, dimensionality reduction and
clustering. Those steps export one delimited table with a cell id column,
embedding columns (e.g. PC_1, PC_2 or UMAP_1, UMAP_2) and a cluster column.
This module reads that table into a pandas DataFrame; validation happens in
the ingestion stage.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Union

import pandas as pd

from lintra.errors import InvalidInputError

if TYPE_CHECKING:
    from lintra.schemas import InternalConfig

__all__ = ['CellTableLoader']

logger = logging.getLogger(__name__)

SEPARATORS = {"csv": ",", "tsv": "\t"}


class CellTableLoader:
    """Load a CSV/TSV cell table.

    Cluster and cell id columns are read as strings so that numeric cluster
    labels ("0", "1", ...) and barcodes keep their exact spelling.

    Examples
    --------
    >>> loader = CellTableLoader(config)
    >>> df = loader.load("pbmc3k_clusters.csv")
    >>> df.columns.tolist()
    ['cell_id', 'PC_1', 'PC_2', 'cluster']
    """

    def __init__(self, config: "InternalConfig"):
        self.config = config
        self.file_format = config.reader.file_format
        self.cell_id_column = config.reader.cell_id_column
        self.cluster_column = config.reader.cluster_column

    def load(self, path: Union[str, Path]) -> pd.DataFrame:
        """Read the cell table at ``path``.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        InvalidInputError
            If the file cannot be parsed as a delimited table.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Cell table not found: {path}")

        dtype = {self.cluster_column: str}
        if self.cell_id_column is not None:
            dtype[self.cell_id_column] = str

        try:
            df = pd.read_csv(path, sep=SEPARATORS[self.file_format], dtype=dtype)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise InvalidInputError(f"Could not parse cell table {path.name}: {e}") from e

        logger.info("Loaded cell table %s: %d rows, %d columns", path.name, len(df), len(df.columns))
        return df
