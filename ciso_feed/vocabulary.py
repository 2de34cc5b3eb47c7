"""Keyword vocabularies used by the extractors, classifier and pre-API gate.

All lists are matched case-insensitively as substrings. Order matters: the
extractors report hits in list order and the gate reports the first hit.
"""

from typing import Dict, List, Tuple

# Known, currently active threat actors
THREAT_ACTORS: List[str] = [
    "Lazarus", "APT29", "APT28", "APT41", "APT38", "FIN7", "FIN8", "TA505",
    "Carbanak", "Sandworm", "Turla", "Kimsuky", "Winnti", "Cozy Bear",
    "Fancy Bear", "Equation Group", "DarkSide", "REvil", "Conti", "LockBit",
    "BlackCat", "ALPHV", "Cl0p", "Hive", "Vice Society", "BlackBasta",
    "Volt Typhoon", "Scattered Spider",
]

# Enterprise products and technologies worth tracking
CRITICAL_PRODUCTS: List[str] = [
    "Windows Server", "Exchange", "Active Directory", "SharePoint", "Azure",
    "Office 365", "Microsoft 365", "Fortinet", "FortiGate", "Cisco", "Palo Alto",
    "VMware", "vSphere", "ESXi", "Citrix", "VPN", "Firewall", "Apache", "nginx",
    "SAP", "Oracle", "PostgreSQL", "MySQL", "Redis", "MongoDB", "Kubernetes",
    "Docker", "Jenkins", "GitLab", "Linux", "Ubuntu", "Red Hat", "CentOS",
]

# High-priority MITRE ATT&CK techniques (reference list for dashboards)
PRIORITY_ATTACK_TECHNIQUES: List[str] = [
    "T1078",  # Valid Accounts
    "T1190",  # Exploit Public-Facing Application
    "T1566",  # Phishing
    "T1059",  # Command and Scripting Interpreter
    "T1003",  # OS Credential Dumping
    "T1486",  # Data Encrypted for Impact
    "T1021",  # Remote Services
    "T1027",  # Obfuscated Files or Information
    "T1057",  # Process Discovery
    "T1087",  # Account Discovery
    "T1547",  # Boot or Logon Autostart Execution
    "T1053",  # Scheduled Task/Job
    "T1569",  # System Services
    "T1204",  # User Execution
    "T1560",  # Archive Collected Data
    "T1048",  # Exfiltration Over Alternative Protocol
    "T1567",  # Exfiltration Over Web Service
]

# Sources treated as authoritative
OFFICIAL_SOURCES: List[str] = [
    "US-CERT (CISA)", "Microsoft Security", "Google Cloud Security",
    "NIST", "ENISA", "Cisco Security", "Palo Alto Unit42",
    "CrowdStrike", "Mandiant", "Talos Intelligence",
]

REGULATORY_KEYWORDS: List[str] = [
    "DORA", "NIS2", "GDPR", "ISO 27001", "ISO 27002", "NIST", "PCI DSS",
    "SOC 2", "HIPAA", "compliance", "regulation", "normativa", "cumplimiento",
    "data protection", "privacy", "RGPD", "protección de datos",
]

# Severity tiers, checked top-down
CRITICAL_IMPACT_KEYWORDS: List[str] = [
    "critical", "crítico", "crítica", "actively exploited", "zero-day", "zero day",
    "mass exploitation", "widespread", "emergency patch", "urgent",
    "immediate action", "active exploitation", "in the wild",
]

HIGH_IMPACT_KEYWORDS: List[str] = [
    "high severity", "severe", "dangerous", "alta severidad", "peligroso",
]

MEDIUM_IMPACT_KEYWORDS: List[str] = [
    "moderate", "medium", "moderado", "media",
]

# Patch availability phrases (EN + ES), compiled into one regex by the extractors
PATCH_KEYWORDS: List[str] = [
    "patch available", "patch released", "patches available", "patches released",
    "update available", "security update", "hotfix", "security patch",
    "fix available", "fixed in version", "parche disponible", "parches disponibles",
    "actualización de seguridad", "actualizacion de seguridad", "corregido en la versión",
]

# CIA+NR keyword groups: (score, keywords). 3 = direct, 2 = indirect, 1 = tangential.
CIA_KEYWORDS: Dict[str, List[Tuple[int, List[str]]]] = {
    "confidentiality": [
        (3, [
            "data breach", "data leak", "exposed data", "leaked database",
            "credentials leak", "password dump",
            "brecha de datos", "filtración de datos", "fuga de datos",
            "base de datos filtrada", "volcado de contraseñas",
        ]),
        (2, [
            "unauthorized access", "information disclosure", "sensitive data",
            "personal information", "privacy breach",
            "acceso no autorizado", "divulgación de información", "datos sensibles",
            "información personal", "datos personales",
        ]),
        (1, [
            "encryption", "data exposure", "confidential", "private key", "secret",
            "cifrado", "exposición de datos", "confidencial", "clave privada",
        ]),
    ],
    "integrity": [
        (3, [
            "backdoor", "rootkit", "trojan", "code injection", "sql injection",
            "command injection",
            "puerta trasera", "troyano", "inyección de código", "inyección sql",
            "inyección de comandos",
        ]),
        (2, [
            "malware", "virus", "worm", "file modification", "tampering",
            "gusano", "modificación de archivos", "manipulación",
        ]),
        (1, [
            "integrity check", "checksum", "hash",
            "verificación de integridad", "suma de verificación",
        ]),
    ],
    "availability": [
        (3, [
            "ddos", "denial of service", "ransomware", "system down", "outage",
            "service disruption",
            "denegación de servicio", "caída del sistema", "interrupción del servicio",
        ]),
        (2, [
            "downtime", "unavailable", "crash", "flooding",
            "tiempo de inactividad", "no disponible", "inundación",
        ]),
        (1, [
            "performance", "slowdown", "resource exhaustion",
            "rendimiento", "lentitud", "agotamiento de recursos",
        ]),
    ],
    "non-repudiation": [
        (3, [
            "log deletion", "log tampering", "anti-forensics", "covering tracks",
            "borrado de logs", "eliminación de registros", "antiforense",
            "borrar huellas",
        ]),
        (2, [
            "logging", "audit trail", "forensics", "attribution",
            "registro de auditoría", "análisis forense", "atribución",
        ]),
        (1, [
            "timestamp", "digital signature", "certificate",
            "marca de tiempo", "firma digital", "certificado",
        ]),
    ],
}

# ---------------------------------------------------------------------------
# Pre-API gate lists. Precedence: BLACKLIST > TECHNICAL > BUSINESS > reject.
# ---------------------------------------------------------------------------

TECHNICAL_WHITELIST: List[str] = [
    # Vulnerabilities (EN)
    "cve-2024-", "cve-2025-", "cve-2026-",
    "cvss 9.", "cvss 10", "cvss:9", "cvss:10", "cvss: 9.", "cvss: 10",
    "zero-day", "0-day", "zero day",
    "remote code execution", "rce",
    "privilege escalation",
    "authentication bypass",
    "sql injection", "command injection", "code injection",
    "critical vulnerability", "critical patch", "critical flaw",
    "actively exploited", "in the wild", "exploited in the wild",
    "emergency patch", "out-of-band patch",
    "proof of concept", "poc exploit",
    # Vulnerabilities (ES)
    "cve-", "día cero",
    "ejecución remota de código",
    "escalada de privilegios", "escalamiento de privilegios",
    "bypass de autenticación",
    "inyección sql", "inyección de código",
    "vulnerabilidad crítica", "vulnerabilidad activamente explotada",
    "parche de emergencia", "parche crítico",
    "siendo explotado", "explotado activamente",
    # Threat intelligence (EN)
    "apt28", "apt29", "apt32", "apt33", "apt41", "apt40",
    "lazarus", "lazarus group", "kimsuky", "volt typhoon",
    "fancy bear", "cozy bear", "sandworm", "scattered spider",
    "lockbit", "blackcat", "alphv", "conti", "ryuk", "cl0p", "clop",
    "ransomware attack", "ransomware campaign",
    "malware campaign", "malware family",
    "supply chain attack", "supply chain compromise",
    "nation-state", "state-sponsored",
    "phishing campaign", "spear phishing",
    "data breach", "data leak", "data exfiltration",
    "credential theft", "credential stuffing",
    "botnet", "command and control", "c2 server",
    "backdoor", "rootkit", "trojan", "infostealer",
    "ddos attack", "denial of service",
    # Threat intelligence (ES)
    "ataque ransomware", "campaña ransomware",
    "campaña de malware", "familia de malware",
    "ataque a la cadena de suministro",
    "estado-nación", "patrocinado por estado",
    "campaña de phishing",
    "brecha de datos", "filtración de datos",
    "robo de credenciales",
    "ataque ddos",
    # Critical sectors (EN)
    "banking sector", "financial services", "fintech",
    "healthcare", "hospital attacked", "medical devices",
    "critical infrastructure", "power grid", "water utility",
    "energy sector", "oil and gas",
    "scada", "ics", "ot security", "industrial control",
    "defense contractor", "military",
    # Critical sectors (ES)
    "sector bancario", "servicios financieros",
    "infraestructura crítica", "red eléctrica",
    "sector energético",
    # Affected technologies (EN + ES)
    "active directory", "domain controller",
    "exchange server", "sharepoint",
    "vmware esxi", "vcenter",
    "citrix netscaler", "fortinet fortigate",
    "palo alto", "cisco ios",
    "sap vulnerability", "oracle database",
    # Compliance frameworks (EN)
    "gdpr fine", "gdpr violation",
    "pci-dss", "hipaa breach",
    "sec cybersecurity", "nist framework",
    "nis2", "dora regulation",
    # Compliance frameworks (ES)
    "multa gdpr", "incumplimiento gdpr",
    "regulación nis2", "regulación dora",
]

BUSINESS_WHITELIST: List[str] = [
    # Financial impact (EN)
    "million ransom", "billion ransom",
    "ransom paid", "paid ransom",
    "fined $", "million fine", "billion fine",
    "$10 million", "$50 million", "$100 million",
    "financial loss", "financial damage",
    "insurance claim", "cyber insurance payout",
    "stock price", "shares fell", "market impact",
    "class action", "lawsuit filed", "sec charges",
    # Financial impact (ES)
    "millones de rescate", "rescate pagado",
    "multado con", "multa de", "multa millonaria",
    "10 millones", "50 millones", "100 millones",
    "pérdida financiera", "daño financiero",
    "demanda colectiva", "cargos de la sec",
    # Operational disruption (EN)
    "operations shut down", "operations disrupted",
    "services offline", "taken offline",
    "business disruption", "production halted",
    "days offline", "weeks offline",
    "forced to shut", "systems down",
    # Operational disruption (ES)
    "operaciones detenidas", "servicios interrumpidos",
    "sistemas fuera de línea", "producción paralizada",
    "días sin operar", "semanas sin operar",
    # High-profile entities (EN)
    "fortune 500", "fortune 100",
    "nasdaq breach", "nyse breach",
    "central bank", "treasury department",
    "white house", "pentagon",
    "critical national infrastructure",
    # High-profile entities (ES)
    "banco central", "ministerio de",
    "infraestructura nacional crítica",
    # Regulation and compliance deadlines (EN)
    "new regulation", "mandatory reporting",
    "compliance deadline", "regulatory fine",
    "breach notification law", "new cybersecurity law",
    "executive order", "cisa directive",
    # Regulation and compliance deadlines (ES)
    "nueva regulación", "reporte obligatorio",
    "plazo de cumplimiento", "multa regulatoria",
    "nueva ley de ciberseguridad", "directiva de seguridad",
    # Insurance and liability (EN + ES)
    "cyber insurance", "seguro cibernético",
    "board liability", "director liability",
    "ciso arrested", "ciso charged", "ciso liability",
    "ciso detenido", "responsabilidad del ciso",
]

BLACKLIST: List[str] = [
    # Marketing and events (EN)
    "webinar", "register now", "sign up now",
    "product launch", "new product", "announcing",
    "partnership", "sponsored", "advertisement",
    "free trial", "demo available", "buy now",
    "limited time offer", "discount",
    "podcast episode", "join us",
    # Marketing and events (ES)
    "webinario", "regístrate ahora", "inscríbete",
    "lanzamiento de producto", "nuevo producto",
    "alianza estratégica", "patrocinado",
    "prueba gratuita", "demo disponible",
    "episodio de podcast",
    # Tutorials and how-tos (EN)
    "beginner guide", "introduction to",
    "basics of", "what is a ", "getting started with",
    "for beginners", "learn how to", "101 guide",
    "step by step", "how to set up",
    # Tutorials and how-tos (ES)
    "guía para principiantes", "introducción a",
    "conceptos básicos", "qué es un ", "primeros pasos con",
    "para principiantes", "aprende cómo",
    "paso a paso",
    # Listicles (EN + ES)
    "top 10", "top 5", "top 3",
    "best of", "ultimate guide", "guía definitiva",
    "los 10 mejores", "los 5 mejores",
    # Updates and corrections (EN + ES)
    "[updated]", "[actualizado]",
    "correction:", "corrección:",
    "editor's note:", "nota del editor:",
    # Theoretical / hypothetical (EN + ES)
    "theoretical attack", "hypothetical scenario",
    "researchers speculate", "could potentially",
    "ataque teórico", "escenario hipotético",
    "predicciones para", "predictions for ",
    # Opinion and editorial (EN + ES)
    "opinion:", "opinión:", "editorial:",
    "my take:", "point of view",
    "mi opinión:", "punto de vista",
    # Roundups (EN + ES)
    "weekly roundup", "weekly recap",
    "monthly summary", "year in review",
    "resumen semanal", "resumen mensual",
    "lo mejor de la semana",
]
