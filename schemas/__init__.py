from schemas.chunk import ChunkRecord
from schemas.message import Message, Role
from schemas.source_document import SourceDocument
