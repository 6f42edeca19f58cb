"""Stop words excluded from hot-topic keywords (French and English)."""

FRENCH_STOP_WORDS = frozenset({
    "le", "la", "les", "un", "une", "des", "de", "du", "et", "ou", "mais", "donc",
    "car", "ni", "que", "qui", "quoi", "dont", "où", "ce", "cet", "cette", "ces",
    "mon", "ton", "son", "ma", "ta", "sa", "mes", "tes", "ses", "notre", "votre",
    "leur", "nos", "vos", "leurs", "je", "tu", "il", "elle", "nous", "vous", "ils",
    "elles", "on", "me", "te", "se", "lui", "leur", "eux", "dans", "sur", "sous",
    "avec", "sans", "pour", "par", "vers", "chez", "contre", "entre", "parmi",
    "selon", "pendant", "depuis", "avant", "après", "devant", "derrière", "au",
    "aux", "à", "en", "y", "plus", "moins", "très", "trop", "assez", "peu", "bien",
    "mal", "mieux", "pire", "aussi", "comme", "comment", "quand", "pourquoi",
    "est", "sont", "était", "étaient", "été", "être", "avoir", "avait", "avaient",
    "eu", "fait", "faire", "dit", "dire", "peut", "peuvent", "doit", "doivent",
    "va", "vont", "aller", "venir", "vient", "viennent", "tout", "tous", "toute",
    "toutes", "autre", "autres", "même", "mêmes", "tel", "telle", "tels", "telles",
    "quel", "quelle", "quels", "quelles", "quelque", "quelques", "chaque", "plusieurs",
    "certains", "certaines", "aucun", "aucune", "nul", "nulle", "pas", "jamais",
    "rien", "personne", "aucunement", "nullement", "encore", "déjà", "toujours",
    "souvent", "parfois", "quelquefois", "rarement", "jamais", "hier", "aujourd",
    "hui", "demain", "maintenant", "alors", "ensuite", "puis", "enfin", "ainsi",
    "donc", "cependant", "pourtant", "néanmoins", "toutefois", "sinon", "autrement",
})

ENGLISH_STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "from", "up", "about", "into", "through", "during", "before",
    "after", "above", "below", "between", "under", "again", "further", "then",
    "once", "here", "there", "when", "where", "why", "how", "all", "both", "each",
    "few", "more", "most", "other", "some", "such", "no", "nor", "not", "only",
    "own", "same", "so", "than", "too", "very", "can", "will", "just", "should",
    "now", "this", "that", "these", "those", "is", "are", "was", "were", "been",
    "being", "have", "has", "had", "having", "do", "does", "did", "doing", "would",
    "could", "ought", "i", "you", "he", "she", "it", "we", "they", "them", "their",
    "what", "which", "who", "whom", "whose", "if", "because", "as", "until", "while",
    "get", "got", "getting", "gets", "new", "old", "first", "last", "long", "great",
    "little", "good", "bad", "high", "low", "large", "small", "big", "next", "early",
    "young", "important", "public", "able", "back", "come", "came", "coming", "comes",
})

STOP_WORDS = FRENCH_STOP_WORDS | ENGLISH_STOP_WORDS
