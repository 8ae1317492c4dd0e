# prepstage/engine/types.py
from enum import Enum


class ParallelKind(str, Enum):
    PARTITION = "partition"  # transformation: partition -> partition
    ACTION = "action"        # action: partition -> local value


class ExecutionBackend(str, Enum):
    SERIAL = "serial"
    THREAD = "thread"
    PROCESS = "process"
