"""
structguard descriptors package public API.

Purpose
- Export the descriptor model, registry, normalizer, and document helpers.
"""

from structguard.descriptors.documents import (
    descriptor_from_document,
    descriptor_to_document,
    dump_registry,
    fingerprint,
    load_registry,
    registry_from_document,
    registry_to_document,
)
from structguard.descriptors.model import (
    ANY,
    BIGINT,
    BOOLEAN,
    NEVER,
    NULL,
    NUMBER,
    STRING,
    UNDEFINED,
    UNDEFINED_TYPE,
    UNKNOWN,
    Array,
    Descriptor,
    Forward,
    GenericDefinition,
    GenericInstantiation,
    IndexKeyKind,
    IndexSignature,
    Intersection,
    Literal,
    Object,
    Primitive,
    PrimitiveKind,
    Property,
    Reference,
    Rest,
    Tuple,
    TypeParameter,
    Union,
    array,
    children,
    collect_references,
    generic,
    intersection,
    iter_descriptors,
    literal,
    obj,
    optional,
    param,
    readonly,
    ref,
    tuple_of,
    union,
)
from structguard.descriptors.normalizer import (
    NormalizedGraph,
    Normalizer,
    clear_normalization_cache,
    normalize,
)
from structguard.descriptors.registry import TypeRegistry
from structguard.descriptors.render import render

__all__ = [
    "ANY",
    "BIGINT",
    "BOOLEAN",
    "NEVER",
    "NULL",
    "NUMBER",
    "STRING",
    "UNDEFINED",
    "UNDEFINED_TYPE",
    "UNKNOWN",
    "Array",
    "Descriptor",
    "Forward",
    "GenericDefinition",
    "GenericInstantiation",
    "IndexKeyKind",
    "IndexSignature",
    "Intersection",
    "Literal",
    "NormalizedGraph",
    "Normalizer",
    "Object",
    "Primitive",
    "PrimitiveKind",
    "Property",
    "Reference",
    "Rest",
    "Tuple",
    "TypeParameter",
    "TypeRegistry",
    "Union",
    "array",
    "children",
    "clear_normalization_cache",
    "collect_references",
    "descriptor_from_document",
    "descriptor_to_document",
    "dump_registry",
    "fingerprint",
    "generic",
    "intersection",
    "iter_descriptors",
    "literal",
    "load_registry",
    "normalize",
    "obj",
    "optional",
    "param",
    "readonly",
    "ref",
    "registry_from_document",
    "registry_to_document",
    "render",
    "tuple_of",
    "union",
]
