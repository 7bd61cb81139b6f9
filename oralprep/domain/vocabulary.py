"""
Vocabulary level estimation against embedded CEFR word lists

Spanish lists carry the scoring; English lists catch code-switched answers.
Tokens are accent-folded before lookup so "educación" and "educacion" land
on the same entry.
"""

import re
import unicodedata
from typing import List

import structlog

from oralprep.domain.models import VocabularyAnalysis, WordBucket
from oralprep.utils import round_half_up, round_int

logger = structlog.get_logger(__name__)


LEVEL_ELEMENTARY = "A1-A2"
LEVEL_INTERMEDIATE = "B1-B2"
LEVEL_ADVANCED = "C1-C2"
LEVEL_OTHER = "Other"

BUCKET_ORDER = (LEVEL_ELEMENTARY, LEVEL_INTERMEDIATE, LEVEL_ADVANCED, LEVEL_OTHER)

ELEMENTARY_WORDS = frozenset({
    # Spanish
    "ser", "estar", "tener", "hacer", "ir", "poder", "decir", "ver", "dar", "saber",
    "querer", "llegar", "pasar", "deber", "poner", "parecer", "quedar", "creer", "hablar", "llevar",
    "dejar", "seguir", "encontrar", "llamar", "venir", "pensar", "salir", "volver", "tomar", "conocer",
    "vivir", "sentir", "tratar", "mirar", "contar", "empezar", "esperar", "buscar", "existir", "entrar",
    "casa", "familia", "amigo", "amiga", "escuela", "colegio", "padre", "madre", "hermano", "hermana",
    "hijo", "hija", "agua", "comida", "tiempo", "dia", "noche", "ano", "hombre", "mujer",
    "nino", "nina", "ciudad", "pais", "mundo", "cosa", "vida", "forma", "parte", "lugar",
    "trabajo", "nombre", "punto", "momento", "grande", "bueno", "malo", "nuevo", "primero", "ultimo",
    "pequeno", "mejor", "mismo", "largo", "mucho", "poco", "otro", "todo", "mas", "menos",
    "bien", "tambien", "aqui", "donde", "cuando", "como", "pero", "porque", "si", "muy",
    # English
    "be", "is", "am", "are", "was", "were", "have", "has", "had", "do", "does", "did",
    "go", "come", "make", "take", "get", "give", "know", "think", "see", "want", "use",
    "find", "tell", "ask", "work", "call", "try", "need", "feel", "become", "leave",
    "house", "family", "friend", "school", "father", "mother", "brother", "sister",
    "child", "water", "food", "time", "day", "night", "year", "man", "woman",
    "boy", "girl", "city", "country", "world", "thing", "life", "way", "part", "place",
    "name", "good", "bad", "new", "first", "last", "small", "big", "long", "old", "young",
    "much", "many", "other", "all", "more", "less", "also", "here", "where", "when",
    "how", "but", "because", "if", "very", "well", "just", "now", "then", "people",
    "who", "we", "they", "that", "this", "the", "and", "for", "not", "with",
    "can", "will", "would", "should", "could", "about", "like", "some", "what",
})

INTERMEDIATE_WORDS = frozenset({
    # Spanish
    "desarrollo", "sociedad", "influencia", "cultura", "economia", "educacion", "gobierno", "ambiente",
    "comunicacion", "tecnologia", "investigacion", "organizacion", "poblacion", "situacion", "experiencia",
    "resultado", "relacion", "problema", "sistema", "proceso", "recurso", "oportunidad", "comunidad",
    "diferencia", "importancia", "significado", "perspectiva", "responsabilidad", "diversidad", "tradicion",
    "costumbre", "identidad", "patrimonio", "intercambio", "transformacion", "globalizacion", "desafio",
    "contribuir", "establecer", "mantener", "desarrollar", "representar", "considerar", "reconocer",
    "producir", "permitir", "conseguir", "pertenecer", "alcanzar", "demostrar", "expresar", "reflejar",
    "promover", "generar", "afectar", "influir", "participar", "implementar", "analizar", "comparar",
    "interpretar", "valorar", "observar", "destacar", "integrar", "impactar", "fortalecer", "enriquecer",
    "significativo", "importante", "fundamental", "cultural", "social", "economico", "politico", "ambiental",
    "contemporaneo", "tradicional", "diverso", "complejo", "especifico", "particular", "general", "actual",
    "evidente", "necesario", "posible", "diferente", "principal", "esencial", "relevante", "considerable",
    # English
    "development", "society", "influence", "culture", "economy", "education", "government",
    "environment", "communication", "technology", "research", "organization", "population",
    "situation", "experience", "result", "relationship", "problem", "system", "process",
    "resource", "opportunity", "community", "difference", "importance", "meaning",
    "perspective", "responsibility", "diversity", "tradition", "custom", "identity",
    "heritage", "exchange", "transformation", "challenge", "significant", "important",
    "fundamental", "cultural", "social", "economic", "political", "environmental",
    "contemporary", "traditional", "diverse", "complex", "specific", "particular",
    "general", "current", "evident", "necessary", "possible", "different", "essential",
    "relevant", "considerable", "contribute", "establish", "maintain", "develop",
    "represent", "consider", "recognize", "produce", "achieve", "demonstrate", "express",
    "reflect", "promote", "generate", "affect", "participate", "analyze", "compare",
    "interpret", "observe", "integrate", "strengthen", "enrich", "shape", "impact",
    "value", "belief", "aspect", "issue", "factor", "concept", "approach", "structure",
    "feature", "context", "role", "effort", "purpose", "ability", "awareness",
})

ADVANCED_WORDS = frozenset({
    # Spanish
    "subyacente", "paradigma", "idiosincrasia", "coyuntura", "hegemonia", "dicotomia", "intrinseco",
    "extrinseco", "ambivalencia", "yuxtaposicion", "idiosincratico", "epistemologico", "ontologico",
    "inherente", "trascendental", "multifacetico", "interdisciplinario", "sociocultural", "transversal",
    "reivindicacion", "empoderamiento", "resiliencia", "sostenibilidad", "equidad", "interculturalidad",
    "cosmovision", "deconstruir", "resignificar", "contextualizar", "problematizar", "conceptualizar",
    "connotar", "denotar", "subyacer", "trascender", "concatenar", "dilucidar", "elucidar",
    "paradigmatico", "axiologico", "heuristico", "dialectico", "fenomenologico", "hermeneutico",
    "pragmatico", "holistico", "sistemico", "heterogeneo", "homogeneo", "antagonico",
    "sinergia", "disyuntiva", "premisa", "constructo", "discurso", "enunciado", "semantico",
    "pragmatica", "retorica", "metanarrativa", "neoliberalismo",
    "posmodernidad", "interseccionalidad", "alteridad", "otredad", "hibridacion", "mestizaje",
    "aculturacion", "transculturacion", "etnocentrismo", "relativismo", "determinismo", "esencialismo",
    "indagar", "escudrinar", "discernir", "articular", "esbozar", "entrever",
    # English
    "underlying", "paradigm", "idiosyncrasy", "hegemony", "dichotomy", "intrinsic",
    "extrinsic", "ambivalence", "juxtaposition", "epistemological", "ontological",
    "inherent", "transcendental", "multifaceted", "interdisciplinary", "sociocultural",
    "transversal", "empowerment", "resilience", "sustainability", "equity",
    "interculturality", "deconstruct", "contextualize", "problematize", "conceptualize",
    "connote", "denote", "transcend", "concatenate", "elucidate", "paradigmatic",
    "axiological", "heuristic", "dialectical", "phenomenological", "hermeneutic",
    "pragmatic", "holistic", "systemic", "heterogeneous", "homogeneous", "antagonistic",
    "synergy", "disjunctive", "premise", "construct", "discourse", "semantic",
    "rhetoric", "metanarrative", "neoliberalism", "postmodernity", "intersectionality",
    "alterity", "hybridization", "acculturation", "transculturation", "ethnocentrism",
    "relativism", "determinism", "essentialism", "scrutinize", "discern", "articulate",
})

# CEFR ladder thresholds: (min advanced, min intermediate) per tier
C1_THRESHOLD = (3, 5)
B2_THRESHOLD = (1, 3)
B1_MIN_INTERMEDIATE = 2
A2_MIN_ELEMENTARY = 3

MAX_DIVERSITY_POINTS = 4
MAX_LEVEL_POINTS = 6

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def fold_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(char for char in decomposed if not unicodedata.combining(char)).lower()


class VocabularyScorer:
    """Estimates a CEFR-like level, lexical diversity and a complexity score"""

    def tokenize(self, text: str) -> List[str]:
        cleaned = _NON_ALNUM.sub(" ", fold_accents(text))
        return [token for token in cleaned.split() if len(token) > 1]

    def classify(self, word: str) -> str:
        # Most advanced list wins for words present in several lists.
        if word in ADVANCED_WORDS:
            return LEVEL_ADVANCED
        if word in INTERMEDIATE_WORDS:
            return LEVEL_INTERMEDIATE
        if word in ELEMENTARY_WORDS:
            return LEVEL_ELEMENTARY
        return LEVEL_OTHER

    def estimate_level(self, elementary: int, intermediate: int, advanced: int) -> str:
        if advanced >= C1_THRESHOLD[0] and intermediate >= C1_THRESHOLD[1]:
            return "C1"
        if advanced >= B2_THRESHOLD[0] and intermediate >= B2_THRESHOLD[1]:
            return "B2"
        if intermediate >= B1_MIN_INTERMEDIATE:
            return "B1"
        if elementary >= A2_MIN_ELEMENTARY:
            return "A2"
        return "A1"

    def analyze(self, text: str) -> VocabularyAnalysis:
        tokens = self.tokenize(text or "")
        logger.debug("Analyzing vocabulary", tokens=len(tokens))

        if not tokens:
            return VocabularyAnalysis(
                estimated_level="N/A",
                lexical_diversity=0,
                word_distribution=[WordBucket(level=level, count=0, percentage=0) for level in BUCKET_ORDER],
                advanced_words=[],
                complexity_score=0,
            )

        # dict.fromkeys keeps first-seen order for advanced_words
        unique_tokens = list(dict.fromkeys(tokens))
        lexical_diversity = round_half_up(len(unique_tokens) / len(tokens), 2)

        counts = {level: 0 for level in BUCKET_ORDER}
        advanced_words: List[str] = []
        for word in unique_tokens:
            level = self.classify(word)
            counts[level] += 1
            if level == LEVEL_ADVANCED:
                advanced_words.append(word)

        classified = len(unique_tokens)
        distribution = [
            WordBucket(level=level, count=counts[level], percentage=round_int(counts[level] / classified * 100))
            for level in BUCKET_ORDER
        ]

        elementary = counts[LEVEL_ELEMENTARY]
        intermediate = counts[LEVEL_INTERMEDIATE]
        advanced = counts[LEVEL_ADVANCED]

        diversity_points = min(lexical_diversity * 10, MAX_DIVERSITY_POINTS)
        level_points = min((intermediate * 1.5 + advanced * 3) / classified * 4, MAX_LEVEL_POINTS)
        complexity = min(10, round_half_up(diversity_points + level_points, 1))

        result = VocabularyAnalysis(
            estimated_level=self.estimate_level(elementary, intermediate, advanced),
            lexical_diversity=lexical_diversity,
            word_distribution=distribution,
            advanced_words=advanced_words,
            complexity_score=complexity,
        )

        logger.debug("Vocabulary analysis complete",
                     level=result.estimated_level,
                     diversity=lexical_diversity,
                     complexity=complexity,
                     elementary=elementary,
                     intermediate=intermediate,
                     advanced=advanced,
                     other=counts[LEVEL_OTHER])
        return result


# Global scorer instance
vocabulary_scorer = VocabularyScorer()
