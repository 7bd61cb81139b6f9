"""
Spanish verb tense classification for learner transcripts

Each token is looked up in a table of high-frequency irregular verbs and,
failing that, matched against regular conjugation endings. The result is a
per-tense distribution, a variety score and the list of tenses never used.
"""

import re
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

import structlog

from oralprep.domain.models import TenseAnalysis, TenseEntry

logger = structlog.get_logger(__name__)


ALL_TENSES: Tuple[str, ...] = (
    "present",
    "preterite",
    "imperfect",
    "future",
    "conditional",
    "subjunctive",
)

MAX_EXAMPLES = 3

IRREGULAR_VERBS: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "ser": {
        "present": ("soy", "eres", "es", "somos", "sois", "son"),
        "preterite": ("fui", "fuiste", "fue", "fuimos", "fuisteis", "fueron"),
        "imperfect": ("era", "eras", "éramos", "erais", "eran"),
        "future": ("seré", "serás", "será", "seremos", "seréis", "serán"),
        "conditional": ("sería", "serías", "seríamos", "seríais", "serían"),
        "subjunctive": ("sea", "seas", "seamos", "seáis", "sean"),
    },
    "estar": {
        "present": ("estoy", "estás", "está", "estamos", "estáis", "están"),
        "preterite": ("estuve", "estuviste", "estuvo", "estuvimos", "estuvisteis", "estuvieron"),
        "subjunctive": ("esté", "estés", "estemos", "estéis", "estén"),
    },
    "ir": {
        "present": ("voy", "vas", "va", "vamos", "vais", "van"),
        "preterite": ("fui", "fuiste", "fue", "fuimos", "fuisteis", "fueron"),
        "imperfect": ("iba", "ibas", "íbamos", "ibais", "iban"),
        "subjunctive": ("vaya", "vayas", "vayamos", "vayáis", "vayan"),
    },
    "haber": {
        "present": ("he", "has", "ha", "hay", "hemos", "habéis", "han"),
        "preterite": ("hube", "hubiste", "hubo", "hubimos", "hubisteis", "hubieron"),
        "imperfect": ("había", "habías", "habíamos", "habíais", "habían"),
        "future": ("habré", "habrás", "habrá", "habremos", "habréis", "habrán"),
        "conditional": ("habría", "habrías", "habríamos", "habríais", "habrían"),
        "subjunctive": ("haya", "hayas", "hayamos", "hayáis", "hayan"),
    },
    "tener": {
        "present": ("tengo", "tienes", "tiene", "tenemos", "tenéis", "tienen"),
        "preterite": ("tuve", "tuviste", "tuvo", "tuvimos", "tuvisteis", "tuvieron"),
        "future": ("tendré", "tendrás", "tendrá", "tendremos", "tendréis", "tendrán"),
        "conditional": ("tendría", "tendrías", "tendríamos", "tendríais", "tendrían"),
        "subjunctive": ("tenga", "tengas", "tengamos", "tengáis", "tengan"),
    },
    "hacer": {
        "present": ("hago", "haces", "hace", "hacemos", "hacéis", "hacen"),
        "preterite": ("hice", "hiciste", "hizo", "hicimos", "hicisteis", "hicieron"),
        "future": ("haré", "harás", "hará", "haremos", "haréis", "harán"),
        "conditional": ("haría", "harías", "haríamos", "haríais", "harían"),
        "subjunctive": ("haga", "hagas", "hagamos", "hagáis", "hagan"),
    },
    "poder": {
        "present": ("puedo", "puedes", "puede", "podemos", "podéis", "pueden"),
        "preterite": ("pude", "pudiste", "pudo", "pudimos", "pudisteis", "pudieron"),
        "future": ("podré", "podrás", "podrá", "podremos", "podréis", "podrán"),
        "conditional": ("podría", "podrías", "podríamos", "podríais", "podrían"),
        "subjunctive": ("pueda", "puedas", "podamos", "podáis", "puedan"),
    },
    "decir": {
        "present": ("digo", "dices", "dice", "decimos", "decís", "dicen"),
        "preterite": ("dije", "dijiste", "dijo", "dijimos", "dijisteis", "dijeron"),
        "future": ("diré", "dirás", "dirá", "diremos", "diréis", "dirán"),
        "conditional": ("diría", "dirías", "diríamos", "diríais", "dirían"),
        "subjunctive": ("diga", "digas", "digamos", "digáis", "digan"),
    },
    "querer": {
        "present": ("quiero", "quieres", "quiere", "queremos", "queréis", "quieren"),
        "preterite": ("quise", "quisiste", "quiso", "quisimos", "quisisteis", "quisieron"),
        "future": ("querré", "querrás", "querrá", "querremos", "querréis", "querrán"),
        "conditional": ("querría", "querrías", "querríamos", "querríais", "querrían"),
        "subjunctive": ("quiera", "quieras", "queramos", "queráis", "quieran"),
    },
    "saber": {
        "present": ("sé", "sabes", "sabe", "sabemos", "sabéis", "saben"),
        "preterite": ("supe", "supiste", "supo", "supimos", "supisteis", "supieron"),
        "future": ("sabré", "sabrás", "sabrá", "sabremos", "sabréis", "sabrán"),
        "subjunctive": ("sepa", "sepas", "sepamos", "sepáis", "sepan"),
    },
    "poner": {
        "present": ("pongo", "pones", "pone", "ponemos", "ponéis", "ponen"),
        "preterite": ("puse", "pusiste", "puso", "pusimos", "pusisteis", "pusieron"),
        "future": ("pondré", "pondrás", "pondrá", "pondremos", "pondréis", "pondrán"),
        "subjunctive": ("ponga", "pongas", "pongamos", "pongáis", "pongan"),
    },
    "venir": {
        "present": ("vengo", "vienes", "viene", "venimos", "venís", "vienen"),
        "preterite": ("vine", "viniste", "vino", "vinimos", "vinisteis", "vinieron"),
        "future": ("vendré", "vendrás", "vendrá", "vendremos", "vendréis", "vendrán"),
        "subjunctive": ("venga", "vengas", "vengamos", "vengáis", "vengan"),
    },
    "salir": {
        "present": ("salgo", "sales", "sale", "salimos", "salís", "salen"),
        "future": ("saldré", "saldrás", "saldrá", "saldremos", "saldréis", "saldrán"),
        "subjunctive": ("salga", "salgas", "salgamos", "salgáis", "salgan"),
    },
    "dar": {
        "present": ("doy", "das", "da", "damos", "dais", "dan"),
        "preterite": ("di", "diste", "dio", "dimos", "disteis", "dieron"),
        "subjunctive": ("dé", "des", "demos", "deis", "den"),
    },
    "ver": {
        "present": ("veo", "ves", "ve", "vemos", "veis", "ven"),
        "preterite": ("vi", "viste", "vio", "vimos", "visteis", "vieron"),
        "imperfect": ("veía", "veías", "veíamos", "veíais", "veían"),
        "subjunctive": ("vea", "veas", "veamos", "veáis", "vean"),
    },
    "conocer": {
        "present": ("conozco", "conoces", "conoce", "conocemos", "conocéis", "conocen"),
        "subjunctive": ("conozca", "conozcas", "conozcamos", "conozcáis", "conozcan"),
    },
    "traer": {
        "present": ("traigo", "traes", "trae", "traemos", "traéis", "traen"),
        "preterite": ("traje", "trajiste", "trajo", "trajimos", "trajisteis", "trajeron"),
        "subjunctive": ("traiga", "traigas", "traigamos", "traigáis", "traigan"),
    },
    "creer": {
        "present": ("creo", "crees", "cree", "creemos", "creéis", "creen"),
        "preterite": ("creí", "creíste", "creyó", "creímos", "creísteis", "creyeron"),
    },
    "leer": {
        "present": ("leo", "lees", "lee", "leemos", "leéis", "leen"),
        "preterite": ("leí", "leíste", "leyó", "leímos", "leísteis", "leyeron"),
    },
    "oír": {
        "present": ("oigo", "oyes", "oye", "oímos", "oís", "oyen"),
        "preterite": ("oí", "oíste", "oyó", "oímos", "oísteis", "oyeron"),
        "subjunctive": ("oiga", "oigas", "oigamos", "oigáis", "oigan"),
    },
}


def _build_irregular_lookup() -> Mapping[str, str]:
    # Later entries win for forms shared between verbs or tenses ("oímos").
    lookup: Dict[str, str] = {}
    for forms in IRREGULAR_VERBS.values():
        for tense, words in forms.items():
            for word in words:
                lookup[word] = tense
    return MappingProxyType(lookup)


IRREGULAR_LOOKUP = _build_irregular_lookup()

_STEM = "[a-záéíóúüñ]+"

# Longest, most distinctive endings first: "-ería" must reach the conditional
# before the bare "-a" of the present tense claims it.
# "-amos" and "-imos" are read as present; the preterite forms are identical.
TENSE_PATTERNS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("conditional", re.compile(
        rf"^{_STEM}(?:aría|arías|aríamos|aríais|arían|ería|erías|eríamos|eríais|erían"
        r"|iría|irías|iríamos|iríais|irían)$"
    )),
    ("future", re.compile(
        rf"^{_STEM}(?:aré|arás|ará|aremos|aréis|arán|eré|erás|erá|eremos|eréis|erán"
        r"|iré|irás|irá|iremos|iréis|irán)$"
    )),
    ("imperfect", re.compile(
        rf"^{_STEM}(?:aba|abas|ábamos|abais|aban|ía|ías|íamos|íais|ían)$"
    )),
    ("subjunctive", re.compile(
        rf"^{_STEM}(?:ara|aras|áramos|arais|aran|iera|ieras|iéramos|ierais|ieran"
        r"|ase|ases|ásemos|aseis|asen|iese|ieses|iésemos|ieseis|iesen)$"
    )),
    ("preterite", re.compile(
        rf"^{_STEM}(?:é|aste|ó|asteis|aron|í|iste|ió|isteis|ieron)$"
    )),
    ("present", re.compile(
        rf"^{_STEM}(?:o|as|a|amos|áis|an|es|e|emos|éis|en|imos|ís)$"
    )),
)

_STRIP_PATTERN = re.compile(r"[^a-z0-9_áéíóúüñ\s]")


class TenseClassifier:
    """Assigns learner tokens to one of six Spanish tense categories"""

    def tokenize(self, text: str) -> List[str]:
        return _STRIP_PATTERN.sub("", text.lower()).split()

    def classify(self, token: str) -> str:
        """Tense for a single lowercase token, or "" when it is not recognised"""
        irregular = IRREGULAR_LOOKUP.get(token)
        if irregular:
            return irregular
        for tense, pattern in TENSE_PATTERNS:
            if pattern.match(token):
                return tense
        return ""

    def analyze(self, text: str) -> TenseAnalysis:
        """
        Build the tense distribution for a block of learner text.

        Args:
            text: Presentation and student turns joined with spaces

        Returns:
            TenseAnalysis; an empty text yields no tenses, all six missing and
            ``dominant_tense == "none"``
        """
        if not text or not text.strip():
            return TenseAnalysis(missing_tenses=list(ALL_TENSES))

        # Insertion order of this dict is the tie-break for equal counts.
        counts: Dict[str, int] = {}
        examples: Dict[str, List[str]] = {}

        for token in self.tokenize(text):
            tense = self.classify(token)
            if not tense:
                continue
            counts[tense] = counts.get(tense, 0) + 1
            seen = examples.setdefault(tense, [])
            if len(seen) < MAX_EXAMPLES and token not in seen:
                seen.append(token)

        found = sorted(
            (TenseEntry(tense=tense, count=count, examples=examples[tense]) for tense, count in counts.items()),
            key=lambda entry: entry.count,
            reverse=True,
        )

        missing = [tense for tense in ALL_TENSES if tense not in counts]
        variety = min(10, round(10 * len(found) / len(ALL_TENSES)))

        result = TenseAnalysis(
            tenses_found=found,
            total_tenses_used=sum(entry.count for entry in found),
            variety_score=variety,
            missing_tenses=missing,
            dominant_tense=found[0].tense if found else "none",
        )

        logger.debug("Tense analysis complete",
                     distinct=len(found),
                     total=result.total_tenses_used,
                     dominant=result.dominant_tense)
        return result


# Global classifier instance
tense_classifier = TenseClassifier()
