from typing import List

from .core import sprite_url
from .models import EvolutionNode
from .pokeapi import RawChainNode


def flatten(root: RawChainNode) -> List[EvolutionNode]:
    """Flatten an evolution tree into pre-order: each species before its evolutions,
    sibling branches left to right, a whole branch before the next sibling.

    Example: Eevee -> (Vaporeon, Jolteon, Flareon) gives [Eevee, Vaporeon, Jolteon, Flareon].
    """
    out = []
    stack = [root]
    while stack:
        node = stack.pop()
        ref = node.species_ref
        out.append(EvolutionNode(id=ref.id, name=ref.name, image_url=sprite_url(ref.id)))
        # Push children reversed so the leftmost is visited next
        stack.extend(reversed(node.child_chains))
    return out
