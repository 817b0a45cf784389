# fx_ledger/logic/sorter.py

from typing import Iterable, List
from fx_ledger.logic.cost_objects import AcquisitionLot

class LotSorter:
    """
    Responsible for putting acquisition lots into FIFO consumption order.
    """

    def sort_lots(self, lots: Iterable[AcquisitionLot]) -> List[AcquisitionLot]:
        """
        Returns the lots sorted for FIFO consumption.

        Sorting Rules:
        1. Primary sort: acquisition_date ascending (oldest first).
        2. Ties: insertion order, i.e. lot_id ascending.

        Args:
            lots: Lots of a single owner, in any order.

        Returns:
            A new list; the input is left untouched.
        """
        return sorted(lots, key=lambda lot: (lot.acquisition_date, lot.lot_id))
