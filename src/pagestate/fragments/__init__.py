"""fragments subpackage: the dual visual/DOM fragment hierarchy of a page.

Re-exports:
- Fragment / FragmentTree: fragment data and the id-keyed arena with its
  visual and DOM index maps
- FragmentBuilder / is_a_differentiator: rectangles + DOM -> FragmentTree
- DynamicFragmentDetector: flags fragments whose content changed
- UsefulnessPolicy: default minimum-size predicate
- export_fragments: cropped PNG per useful fragment
"""

from pagestate.fragments.builder import FragmentBuilder, is_a_differentiator
from pagestate.fragments.dynamic import DynamicFragmentDetector
from pagestate.fragments.export import export_fragments
from pagestate.fragments.fragment import UNASSIGNED_ID, Fragment, FragmentTree
from pagestate.fragments.usefulness import UsefulnessPolicy

__all__ = [
    "UNASSIGNED_ID",
    "DynamicFragmentDetector",
    "Fragment",
    "FragmentBuilder",
    "FragmentTree",
    "UsefulnessPolicy",
    "export_fragments",
    "is_a_differentiator",
]
