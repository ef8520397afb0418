"""
Vocabulary tables consumed by the normalizer, scorer and adapters.

Kept as plain data so the lists can evolve without touching matching code.
Bump VOCAB_VERSION whenever a table changes so alert reasons and logs can be
traced back to the vocabulary that produced them.
"""

VOCAB_VERSION = "2026.10"

# Post-nominal credentials stripped from person names (matched case-insensitively).
CREDENTIALS = [
    "O.D.", "OD", "M.D.", "MD", "D.O.", "DO", "DPM", "DDS", "DMD",
    "Ph.D.", "PhD", "NP", "PA-C", "PA", "RN", "APRN", "FAAO", "FCOVD",
    "FCLSA", "FNAP", "FACS", "MBA", "MPH", "MS", "BS", "BA",
]

GENERATIONAL_SUFFIXES = ["Jr.", "Jr", "Sr.", "Sr", "II", "III", "IV"]

HONORIFICS = ["Dr.", "Dr", "Mr.", "Mr", "Mrs.", "Mrs", "Ms.", "Ms", "Miss", "Prof.", "Prof"]

# Parenthetical markers introducing a former/alternate family name.
ALTERNATE_NAME_MARKERS = ["formerly", "née", "nee", "aka", "a.k.a.", "born", "maiden"]

# Legal-entity suffixes stripped when they trail an organization name.
LEGAL_SUFFIXES = {
    "inc", "incorporated", "llc", "llp", "lp", "ltd", "corp", "corporation",
    "company", "co", "pc", "pllc", "pa", "psc", "sc", "plc",
}

# Professional credentials that sometimes trail a practice name ("Smith Eye Care, OD").
ORGANIZATION_CREDENTIAL_SUFFIXES = {"md", "od", "dds", "dmd", "do", "ods", "mds"}

# Generic healthcare/eye-care industry vocabulary. A name made only of these
# words denotes no specific entity.
INDUSTRY_STOPWORDS = {
    "the", "of", "and", "at", "for", "a", "an", "in", "by", "dr", "drs",
    "health", "healthcare", "medical", "medicine", "care", "vision", "visions",
    "eye", "eyes", "eyecare", "optical", "optics", "optometry", "optometric",
    "optometrist", "optometrists", "ophthalmology", "ophthalmic", "ophthalmologist",
    "associates", "associate", "clinic", "clinics", "group", "groups", "center",
    "centers", "centre", "practice", "practices", "partners", "family", "services",
    "service", "professional", "professionals", "doctors", "doctor", "physicians",
    "specialists", "specialty", "institute", "network", "consultants", "office",
    "offices", "eyewear", "glasses", "contacts", "lens", "lenses", "retina",
    "cataract", "laser", "surgery", "surgical", "exam", "exams", "total",
}

# Generic geographic words. Kept separate so the list of place words can grow
# without blurring the industry list.
GEOGRAPHIC_STOPWORDS = {
    "north", "south", "east", "west", "northern", "southern", "eastern",
    "western", "central", "northeast", "northwest", "southeast", "southwest",
    "midwest", "coastal", "valley", "metro", "metropolitan", "city", "county",
    "area", "regional", "region", "greater", "downtown", "uptown", "lakes",
    "mountain", "river", "bay",
}

STOPWORDS = INDUSTRY_STOPWORDS | GEOGRAPHIC_STOPWORDS

# Token-overlap matching ignores tokens of this length or shorter.
MIN_SIGNIFICANT_TOKEN_LENGTH = 4

# Provider directories, social networks, job boards and data brokers. Pages on
# these domains list many unrelated organizations, so mentions sourced from
# them are never scored unless the adapter that produced them owns the domain.
DIRECTORY_DOMAINS = {
    "healthgrades.com", "doximity.com", "vitals.com", "zocdoc.com", "webmd.com",
    "ratemds.com", "sharecare.com", "wellness.com", "castlighthealth.com",
    "usnews.com", "npidb.org", "npino.com", "npiprofile.com", "docinfo.org",
    "hipaaspace.com", "opennpi.com", "yelp.com", "yellowpages.com", "bbb.org",
    "mapquest.com", "linkedin.com", "facebook.com", "instagram.com",
    "twitter.com", "x.com", "tiktok.com", "youtube.com", "indeed.com",
    "glassdoor.com", "ziprecruiter.com", "monster.com", "simplyhired.com",
    "careerbuilder.com", "zoominfo.com", "spokeo.com", "whitepages.com",
    "radaris.com", "beenverified.com", "truepeoplesearch.com", "rocketreach.co",
}

SEARCH_ENGINE_DOMAINS = {
    "google.com", "serper.dev", "serpapi.com", "bing.com", "duckduckgo.com",
    "yahoo.com", "ask.com",
}

LINK_SHORTENER_DOMAINS = {
    "bit.ly", "t.co", "tinyurl.com", "goo.gl", "ow.ly", "lnkd.in", "buff.ly",
    "rebrand.ly", "is.gd", "shorturl.at", "g.co",
}

# Third-party registry aggregators probed by the registry adapter.
REGISTRY_AGGREGATOR_SITES = [
    ("NPIDB", "npidb.org"),
    ("NPINO", "npino.com"),
    ("NPI Profile", "npiprofile.com"),
    ("DocInfo", "docinfo.org"),
    ("Zocdoc", "zocdoc.com"),
    ("Vitals", "vitals.com"),
    ("WebMD", "webmd.com/doctor"),
]

# Profession keywords appended to person queries and used to rank profiles.
PROFESSION_QUERY_KEYWORDS = ["OD optometrist", "optometrist"]

PROFESSION_KEYWORDS = [
    "optometrist", "optometry", "o.d.", "doctor of optometry", "eye doctor",
    "eye care", "eyecare", "vision", "ophthalmology", "ophthalmologist",
    "optical", "contact lens", "eye exam",
]

# Business-name suffix words used when picking practice names out of free text.
PRACTICE_NAME_SUFFIXES = [
    "Eye Care", "Eyecare", "Eye Center", "Eye Clinic", "Eye Associates",
    "Eye Institute", "Eye Group", "Eye", "Eyes", "Vision Center",
    "Vision Care", "Vision Clinic", "Vision Source", "Vision", "Optical",
    "Optometry", "Optometric", "Ophthalmology", "Clinic", "Center",
    "Associates", "Group", "Practice", "Eyewear",
]

# Words that mark a capitalized phrase as website chrome rather than a name.
ENRICHMENT_NOISE_WORDS = {
    "your", "our", "book", "schedule", "call", "contact", "about", "learn",
    "visit", "welcome", "home", "insurance", "appointment", "appointments",
    "online", "shop", "new", "patients", "patient", "find", "request", "view",
    "more", "read", "menu", "privacy", "policy", "terms", "careers", "join",
    "click", "here", "today", "now", "free", "best", "top", "near", "me",
}

# Phrases in search snippets that indicate corporate relationships.
RELATIONSHIP_INDICATORS = [
    "owned by", "subsidiary", "acquired", "acquisition", "part of",
    "affiliate", "affiliated", "member of", "merged", "partnership",
    "parent company", "division of", "a brand of", "joined",
]

PROFILE_SCORE_WEIGHTS = {
    "slug_match": 30,
    "title_name_match": 20,
    "profession_keyword": 25,
    "domestic_geography": 15,
    "foreign_locale_penalty": 10,
}

# A slug match alone (30) is not enough to carry a profile forward.
PROFILE_MIN_SCORE = 45

FOREIGN_PROFILE_SUBDOMAINS = {
    "ca", "uk", "au", "in", "de", "fr", "it", "br", "mx", "es", "nl", "be",
    "ch", "at", "ie", "nz", "sg", "hk", "jp", "za", "ph", "pk", "ae",
}

MAJOR_US_CITIES = [
    "new york", "los angeles", "chicago", "houston", "phoenix", "philadelphia",
    "san antonio", "san diego", "dallas", "austin", "jacksonville",
    "fort worth", "columbus", "charlotte", "indianapolis", "seattle",
    "denver", "boston", "nashville", "detroit", "portland", "las vegas",
    "memphis", "louisville", "baltimore", "milwaukee", "atlanta", "miami",
    "tampa", "orlando", "minneapolis", "cleveland", "pittsburgh",
    "st. louis", "kansas city", "raleigh", "salt lake city", "sacramento",
]

US_STATES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming", "DC": "District of Columbia",
}

# CRM pipeline stages worth alerting on, mapped to (confidence, label).
PIPELINE_STAGE_SIGNALS = [
    (("hired", "placed", "started"), "Confirmed", "HIRED"),
    (("negotiation", "offer"), "High", "NEGOTIATION"),
]

# Stages tracked by the CRM sync; kept for the CLI and validation.
TRACKABLE_STAGES = [
    "name clear requested", "name clear", "name cleared", "submitted",
    "client phone interview", "phone interview", "client in-person interview",
    "in-person interview", "working interview", "negotiation", "offer",
    "offer extended", "offer accepted", "hired", "placed", "started",
]

# Known eye-care parent companies and the brands they operate. Seeds the
# manual namespace of the relatedness index.
MANUAL_RELATIONSHIPS = {
    "EssilorLuxottica": [
        "essilor", "luxottica", "lenscrafters", "lens crafters", "pearle vision",
        "target optical", "sears optical", "sunglass hut", "oliver peoples",
        "persol", "ray-ban", "oakley", "eyemed", "grandvision", "for eyes",
        "vision express",
    ],
    "National Vision": [
        "america's best", "americas best", "america's best contacts",
        "eyeglass world", "vista optical", "vision center",
        "fred meyer optical", "walmart vision center",
    ],
    "MyEyeDr": [
        "my eye dr", "myeyedr", "my eye doctor", "clarkson eyecare",
        "svs vision", "vision source member",
    ],
    "EyeCare Partners": ["eyecare partners", "ecp", "eye care partners", "ecp vision"],
    "US Vision": [
        "usvision", "us vision", "jcpenney optical", "jc penney optical",
        "boscov's optical", "boscovs optical", "meijer optical",
    ],
    "VSP Vision": [
        "vsp", "vsp vision", "vsp global", "marchon", "eyefinity",
        "altair eyewear", "visionworks",
    ],
    "Visionworks": ["vision works", "visionworks", "davis vision"],
    "AEG Vision": ["aeg vision", "aeg vision group", "total vision", "vision care associates"],
    "EyeSouth Partners": ["eyesouth", "eye south", "eye south partners", "eyesouth partners"],
    "TeamVision": ["team vision", "teamvision", "olympia vision clinic", "olympic vision"],
    "American Vision Partners": ["avp", "american vision", "american vision partners", "avp eye"],
    "Shopko Optical": ["shopko", "shopko optical"],
    "Clarkson Eyecare": ["clarkson", "clarkson eye", "clarkson eyecare"],
    "Warby Parker": ["warby", "warby parker"],
    "Costco Optical": ["costco optical", "costco vision", "costco eye"],
    "Sam's Club Optical": ["sam's club optical", "sams club optical", "sam's club vision"],
    "BJ's Optical": ["bj's optical", "bjs optical"],
    "Cohen's Fashion Optical": ["cohen's fashion optical", "cohens fashion optical", "cohens optical"],
    "Eye Associates": ["eye associates", "eyecare associates", "eye care associates"],
    "Sterling Optical": ["sterling optical", "sterling vision"],
    "Site for Sore Eyes": ["site for sore eyes", "siteforsoreeyes"],
    "Eyemart Express": ["eyemart express", "eyemart", "eye mart"],
    "Stanton Optical": ["stanton optical", "my eyelab", "now optics"],
    "Texas State Optical": ["tso", "texas state optical"],
    "ACUITY Eyecare Group": ["acuity eyecare", "acuity eye", "acuity group"],
    "Vision Source": ["vision source", "visionsource", "vision source member"],
    "PECAA": ["pecaa", "professional eye care associates of america"],
    "IDOC": ["idoc", "independent doctors of optometric care"],
}
