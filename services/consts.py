# PDG particle codes
ELECTRON = 11
POSITRON = -11
PHOTON = 22
PROTON = 2212
NEUTRON = 2112
NUCLEONS = frozenset({PROTON, NEUTRON})

# Generator status codes in the tagged-record files
STATUS_FINAL = 1
STATUS_EPIC_INTERMEDIATE = 3   # quasi-real / virtual photons (recoded from 1 in EpIC output)
STATUS_EPIC_BEAM = 4
STATUS_TOYMC_INCOMING = 21

# Tagged-record (HepMC3 ASCII) layout
TAGGED_PARTICLES_PER_EVENT = 8
TAGGED_PREAMBLE_TOKENS = 3
AFTERBURNER_PREAMBLE_LINES = 19
AFTERBURNER_PREAMBLE_LINE_TOKENS = 3
TAGGED_EVENT_TAGS = frozenset({"E", "T"})

# Fixed-count (LUND) layout
LUND_HEADER_TOKENS = 10
LUND_PARTICLE_INT_FIELDS = 6
LUND_PARTICLE_REAL_FIELDS = 8
LUND_PARTICLE_TOKENS = LUND_PARTICLE_INT_FIELDS + LUND_PARTICLE_REAL_FIELDS
