# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Exception and warning classes raised by skillimpute."""


class SkillImputeError(Exception):
    """Base class for all errors raised by skillimpute."""


class DegenerateColumnError(SkillImputeError, ValueError):
    """
    A column has no observed entries or an observed variance which is
    zero or undefined, so it can't be standardized.
    """

    def __init__(self, message, columns=()):
        SkillImputeError.__init__(self, message)
        self.columns = list(columns)


class InsufficientDataError(SkillImputeError, ValueError):
    """Too few observed entries to hold out a validation set or to fit."""


class NumericalInstabilityError(SkillImputeError, ArithmeticError):
    """NaN or Inf showed up in the input to, or the output of, an SVD step."""


class NonConvergenceWarning(UserWarning):
    """Solver ran out of iterations before reaching its convergence threshold."""
