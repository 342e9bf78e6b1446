"""
Built-in workload signatures.

Keywords are regular expressions matched case-insensitively with
``re.search`` against process names and installed-software display names.
Order matters for the first-match policy: signatures are tried top to bottom.
"""

from typing import Tuple

from ..models.workload import WorkloadCategory, WorkloadSignature

DEFAULT_SIGNATURES: Tuple[WorkloadSignature, ...] = (
    WorkloadSignature(
        category=WorkloadCategory.GAMING,
        keywords=(
            "steam", "epicgameslauncher", r"battle\.net", r"\borigin\b",
            "riotclient", "gog galaxy", "lutris", "heroic", r"\bwine",
            "proton", "gamemoded",
        ),
    ),
    WorkloadSignature(
        category=WorkloadCategory.RENDERING,
        keywords=(
            "blender", r"\bmaya\b", "3dsmax", "cinema ?4d", "davinci",
            "resolve", "premiere", "after ?effects", "houdini", "kdenlive",
            r"\bobs\b", "handbrake", "ffmpeg",
        ),
    ),
    WorkloadSignature(
        category=WorkloadCategory.DEVELOPMENT,
        keywords=(
            r"\bcode\b", "vscode", "devenv", "pycharm", "intellij", r"\bidea\b",
            "android studio", "eclipse", r"\bgit\b", "docker", r"\bnode\b",
            r"\bjava\b", "gradle", r"\bcargo\b", "rustc", r"\bgcc\b", "clang",
        ),
    ),
    WorkloadSignature(
        category=WorkloadCategory.SCIENTIFIC,
        keywords=(
            "matlab", "rstudio", "jupyter", "anaconda", "mathematica",
            "ansys", "comsol", "octave", "spyder", "paraview", "gromacs",
        ),
    ),
)
