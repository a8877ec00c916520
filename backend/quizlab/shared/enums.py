# quizlab/shared/enums.py
"""
Toutes les énumérations du projet Quizlab.

Source unique de vérité pour les types de condition, les catégories de
violations et les filtres du catalogue.
Importé par l'engine, les modèles, les schemas et les services.
"""

from enum import Enum


class ConditionType(str, Enum):
    SCORE   = "score"     # Plage de score inclusive [min, max] (max ouvert possible)
    PATTERN = "pattern"   # Séquence / ensemble de tags requis


class ViolationKind(str, Enum):
    # ── Toujours vérifiés (brouillon + publication) ──
    INVALID_SLUG         = "invalid_slug"
    DUPLICATE_SLUG       = "duplicate_slug"
    DUPLICATE_ID         = "duplicate_id"
    FOREIGN_ID           = "foreign_id"       # id déjà possédé par un autre test
    NON_CONTIGUOUS_ORDER = "non_contiguous_order"
    DANGLING_REFERENCE   = "dangling_reference"
    INVALID_SCORE_RANGE  = "invalid_score_range"
    EMPTY_PATTERN        = "empty_pattern"
    # ── Publication uniquement (strict=True) ──
    EMPTY_TITLE          = "empty_title"
    NO_QUESTIONS         = "no_questions"
    TOO_FEW_OPTIONS      = "too_few_options"
    EMPTY_PROMPT         = "empty_prompt"
    EMPTY_OPTION_TEXT    = "empty_option_text"
    NO_RESULTS           = "no_results"
    EMPTY_RESULT_TITLE   = "empty_result_title"


class AnswerIssueKind(str, Enum):
    UNKNOWN_QUESTION   = "unknown_question"    # question_id absent du test
    DUPLICATE_QUESTION = "duplicate_question"  # même question répondue deux fois
    FOREIGN_OPTION     = "foreign_option"      # option qui n'appartient pas à la question
    MISSING_QUESTION   = "missing_question"    # question du test sans réponse


class WizardStep(str, Enum):
    BASIC     = "basic"
    QUESTIONS = "questions"
    RESULTS   = "results"


class CatalogueStatus(str, Enum):
    ALL       = "all"
    PUBLISHED = "published"
    DRAFT     = "draft"


class CatalogueSort(str, Enum):
    CREATED_AT = "created_at"
    TITLE      = "title"


class LintKind(str, Enum):
    SHADOWED     = "shadowed"      # résultat masqué par un résultat antérieur
    OUT_OF_REACH = "out_of_reach"  # aucune combinaison de réponses n'atteint la plage
