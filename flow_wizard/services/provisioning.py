"""
Client Provisioner Interface.

Processing steps name an operation ('create-client', 'validate-upload',
'bulk-import'); when the step's timer elapses the FlowController asks the
provisioner to perform it and merges the returned values into the session.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import date
from itertools import count
from typing import Any, Dict, Mapping, Optional

from ..exceptions import ProvisioningError

logger = logging.getLogger(__name__)


class ClientProvisioner(ABC):
    @abstractmethod
    def provision(self, operation: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Performs 'operation' with the session's effective values.

        Returns:
            Values to merge into the session (e.g. {"clientId": ...}).
        Raises:
            ProvisioningError when the operation fails or is unknown.
        """
        pass


class SimulatedClientProvisioner(ClientProvisioner):
    """
    Stand-in backend: fabricates identifiers and record counts so the flows
    can be demonstrated end to end.
    """

    def __init__(self, year: Optional[int] = None, records_per_file: int = 25):
        self.year = year or date.today().year
        self.records_per_file = records_per_file
        self._sequence = count(1)

    def provision(self, operation: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        if operation == "create-client":
            return self._create_client(values)
        if operation == "validate-upload":
            return self._validate_upload(values)
        if operation == "bulk-import":
            return self._bulk_import(values)
        raise ProvisioningError(f"Unknown operation '{operation}'.")

    def _create_client(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        if not values.get("companyName"):
            raise ProvisioningError("A company name is required to create a client.")
        client_id = f"CL-{self.year}-{next(self._sequence):03d}"
        logger.info(f"Simulated client '{values.get('companyName')}' created as {client_id}")
        return {"clientId": client_id}

    def _validate_upload(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        files = values.get("files") or []
        if not files:
            raise ProvisioningError("No file was uploaded.")
        total = 0
        for item in files:
            declared = item.get("records") if isinstance(item, Mapping) else None
            if declared is None:
                total += self.records_per_file
                continue
            name = item.get("name", "upload")
            try:
                records = int(declared)
            except (TypeError, ValueError) as e:
                raise ProvisioningError(f"File '{name}' has an unreadable record count ({declared!r}).") from e
            if records < 0:
                raise ProvisioningError(f"File '{name}' has a negative record count.")
            total += records
        return {"totalRecords": total, "validRecords": total, "invalidRecords": 0}

    def _bulk_import(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        processed = int(values.get("validRecords") or 0)
        batch_id = f"BATCH-{uuid.uuid4().hex[:8].upper()}"
        logger.info(f"Simulated bulk import {batch_id}: {processed} record(s)")
        return {"batchId": batch_id, "processedCount": processed}
