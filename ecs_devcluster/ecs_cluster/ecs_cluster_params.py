#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import string

DEFAULT_CLUSTER_BASE_NAME = "dev-cluster"
IDENTIFIER_SUFFIX_LENGTH = 6
IDENTIFIER_ALPHABET = string.ascii_lowercase + string.digits

PROVIDER_WEIGHT = 1
PROVIDER_BASE = 1
