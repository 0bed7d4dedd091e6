import copy
import math

import numpy as np
import pytest

from tensordb import Tensor, Point3D
from tensordb.exceptions import (
    InvalidShape,
    SizeMismatch,
    RankMismatch,
    OutOfRange,
    ShapeMismatch,
    InvalidArgument,
    TensorError,
)


class TestConstruction:
    def test_default_is_empty_rank_zero(self):
        tensor = Tensor()
        assert tensor.rank == 0
        assert tensor.size == 0
        assert tensor.empty
        assert tensor.shape == ()

    def test_scalar_is_rank_zero_with_one_element(self):
        tensor = Tensor.scalar(2.5)
        assert tensor.rank == 0
        assert tensor.size == 1
        assert tensor.at() == 2.5

    def test_empty_and_scalar_are_distinct(self):
        assert Tensor() != Tensor.scalar(0.0)
        assert Tensor(()) == Tensor.scalar(0.0)

    def test_shape_only_is_zero_filled(self):
        tensor = Tensor((2, 3))
        assert tensor.shape == (2, 3)
        assert tensor.size == 6
        assert tensor.tolist() == [0.0] * 6

    @pytest.mark.parametrize("shape", [(0,), (2, 0), (3, -1)])
    def test_non_positive_dimension_rejected(self, shape):
        with pytest.raises(InvalidShape, match="positive"):
            Tensor(shape)

    def test_non_sequence_shape_rejected(self):
        with pytest.raises(InvalidShape):
            Tensor(3)

    def test_shape_with_data(self):
        tensor = Tensor((2, 2), [1, 2, 3, 4])
        assert tensor.at(1, 0) == 3.0

    def test_data_size_mismatch(self):
        with pytest.raises(SizeMismatch, match="doesn't match shape") as info:
            Tensor((2, 2), [1, 2, 3])
        assert info.value.expected == 4
        assert info.value.actual == 3

    def test_generator_receives_flat_index(self):
        tensor = Tensor((2, 3), lambda i: i * 10)
        assert tensor.tolist() == [0, 10, 20, 30, 40, 50]

    def test_errors_share_base_class(self):
        with pytest.raises(TensorError):
            Tensor((2,), [1.0])
        with pytest.raises(ValueError):
            Tensor((0,))


class TestFactories:
    def test_zeros(self):
        tensor = Tensor.zeros((2, 3))
        assert tensor.shape == (2, 3)
        assert tensor.size == 6
        assert all(value == 0.0 for value in tensor)

    @pytest.mark.parametrize("shape", [(1,), (4,), (2, 3), (2, 3, 4), (1, 1, 1, 5)])
    def test_zeros_size_is_shape_product(self, shape):
        tensor = Tensor.zeros(shape)
        assert tensor.size == math.prod(shape)
        assert tensor.shape == shape

    def test_ones_and_fill(self):
        assert Tensor.ones((3,)).tolist() == [1.0, 1.0, 1.0]
        assert Tensor.fill((2, 2), 3.0).tolist() == [3.0] * 4

    def test_random_within_bounds(self):
        tensor = Tensor.random((50,), -2.0, 2.0, seed=7)
        assert tensor.min() >= -2.0
        assert tensor.max() <= 2.0

    def test_random_seed_is_reproducible(self):
        assert Tensor.random((5,), seed=1) == Tensor.random((5,), seed=1)

    def test_range(self):
        tensor = Tensor.range(1, 6)
        assert tensor.shape == (5,)
        assert tensor.tolist() == [1, 2, 3, 4, 5]

    def test_range_with_fractional_step(self):
        tensor = Tensor.range(0, 1, 0.25)
        assert tensor.tolist() == [0.0, 0.25, 0.5, 0.75]

    def test_range_without_values_is_empty(self):
        assert Tensor.range(5, 1).empty
        assert Tensor.range(3, 3).empty

    def test_range_zero_step(self):
        with pytest.raises(InvalidArgument):
            Tensor.range(0, 1, 0)

    def test_identity(self):
        eye = Tensor.identity(4)
        for i in range(4):
            for j in range(4):
                assert eye.at(i, j) == (1.0 if i == j else 0.0)

    def test_from_vector(self):
        tensor = Tensor.from_vector([1.5, 2.5])
        assert tensor.shape == (2,)
        assert Tensor.from_vector([]).empty

    def test_from_matrix(self):
        tensor = Tensor.from_matrix([[1, 2, 3], [4, 5, 6]])
        assert tensor.shape == (2, 3)
        assert tensor.at(1, 2) == 6.0

    def test_from_matrix_ragged_rows(self):
        with pytest.raises(InvalidArgument, match="Inconsistent row sizes"):
            Tensor.from_matrix([[1, 2], [3]])

    def test_from_matrix_without_rows(self):
        with pytest.raises(InvalidArgument):
            Tensor.from_matrix([])


class TestIndexing:
    def setup_method(self):
        self.tensor = Tensor.range(0, 24).reshape((2, 3, 4))

    def test_strides_are_row_major(self):
        assert self.tensor.strides == (12, 4, 1)
        assert Tensor((5,)).strides == (1,)

    def test_flat_access(self):
        assert self.tensor[13] == 13.0

    def test_flat_out_of_range(self):
        with pytest.raises(OutOfRange):
            self.tensor[24]
        with pytest.raises(IndexError):
            self.tensor[-1]

    def test_multi_index_forms_agree(self):
        assert self.tensor.at(1, 2, 3) == 23.0
        assert self.tensor.at((1, 2, 3)) == 23.0
        assert self.tensor[1, 2, 3] == 23.0

    def test_two_argument_at(self):
        matrix = Tensor.from_matrix([[1, 2], [3, 4]])
        assert matrix.at(0, 1) == 2.0

    def test_rank_mismatch(self):
        with pytest.raises(RankMismatch, match="doesn't match rank"):
            self.tensor.at(1, 2)

    def test_component_out_of_range(self):
        with pytest.raises(OutOfRange):
            self.tensor.at(0, 3, 0)

    def test_set_values(self):
        tensor = Tensor((2, 2))
        tensor[3] = 7.0
        tensor[0, 1] = 5.0
        tensor.set_at((1, 0), 6.0)
        assert tensor.tolist() == [0.0, 5.0, 6.0, 7.0]

    def test_dim(self):
        assert self.tensor.dim(2) == 4
        with pytest.raises(OutOfRange):
            self.tensor.dim(3)

    def test_non_integer_index(self):
        with pytest.raises(TypeError):
            self.tensor[1.5]


class TestValueSemantics:
    def test_copy_duplicates_buffer(self):
        original = Tensor.ones((2,))
        duplicate = original.copy()
        duplicate[0] = 9.0
        assert original[0] == 1.0

    def test_copy_module_support(self):
        original = Tensor.ones((2,))
        assert copy.copy(original) == original
        assert copy.deepcopy(original) is not original

    def test_data_view_is_read_only(self):
        tensor = Tensor.ones((3,))
        with pytest.raises(ValueError):
            tensor.data[0] = 2.0

    def test_constructor_copies_input(self):
        source = np.ones(4, dtype=np.float32)
        tensor = Tensor((4,), source)
        source[0] = 5.0
        assert tensor[0] == 1.0

    def test_slice_does_not_alias(self):
        tensor = Tensor.range(0, 6).reshape((3, 2))
        part = tensor.slice(0, 0, 1)
        part[0] = 100.0
        assert tensor[0] == 0.0


class TestReshaping:
    def test_reshape_keeps_flat_order(self):
        tensor = Tensor.range(1, 13)
        assert tensor.reshape((3, 4)).tolist() == tensor.tolist()
        assert tensor.reshape((2, 2, 3)).tolist() == tensor.tolist()

    def test_reshape_size_mismatch(self):
        with pytest.raises(SizeMismatch, match="incompatible sizes"):
            Tensor.range(1, 13).reshape((5, 2))

    def test_flatten(self):
        tensor = Tensor.range(1, 13).reshape((3, 4)).flatten()
        assert tensor == Tensor.range(1, 13)

    def test_transpose_matrix(self):
        matrix = Tensor.from_matrix([[1, 2], [3, 4]])
        assert matrix.transpose() == Tensor.from_matrix([[1, 3], [2, 4]])

    def test_transpose_twice_is_identity(self):
        matrix = Tensor.random((3, 5), seed=3)
        assert matrix.transpose().transpose() == matrix

    def test_transpose_requires_matrix(self):
        with pytest.raises(InvalidArgument, match="only for 2D"):
            Tensor.range(0, 3).transpose()

    def test_transpose_axes(self):
        tensor = Tensor.range(0, 24).reshape((2, 3, 4))
        permuted = tensor.transpose((2, 0, 1))
        assert permuted.shape == (4, 2, 3)
        assert permuted.at(3, 1, 2) == tensor.at(1, 2, 3)

    def test_transpose_axes_length_checked(self):
        with pytest.raises(RankMismatch):
            Tensor((2, 3)).transpose((0,))

    def test_transpose_rejects_non_permutation(self):
        with pytest.raises(InvalidArgument, match="not a permutation"):
            Tensor((2, 3)).transpose((0, 0))

    def test_transpose_unchecked_accepts_duplicates(self):
        tensor = Tensor.from_matrix([[1, 2, 3], [4, 5, 6]])
        result = tensor.transpose((0, 0), validate=False)
        assert result.shape == (2, 2)
        # Positions (i, i) receive the last element written from row i.
        assert result.at(0, 0) == 3.0
        assert result.at(1, 1) == 6.0
        assert result.at(0, 1) == 0.0

    def test_transpose_unchecked_out_of_range_axis(self):
        with pytest.raises(OutOfRange):
            Tensor((2, 3)).transpose((0, 5), validate=False)

    def test_transpose_empty_stays_empty(self):
        assert Tensor().transpose((), validate=False) == Tensor()
        assert Tensor().transpose(()) == Tensor()

    def test_squeeze(self):
        assert Tensor((1, 3, 1, 2)).squeeze().shape == (3, 2)
        assert Tensor((1, 1)).squeeze().shape == (1,)

    def test_unsqueeze(self):
        tensor = Tensor((3, 2))
        assert tensor.unsqueeze(0).shape == (1, 3, 2)
        assert tensor.unsqueeze(2).shape == (3, 2, 1)
        with pytest.raises(OutOfRange):
            tensor.unsqueeze(3)

    def test_slice(self):
        tensor = Tensor.range(0, 12).reshape((3, 4))
        part = tensor.slice(1, 1, 3)
        assert part.shape == (3, 2)
        assert part.tolist() == [1, 2, 5, 6, 9, 10]

    @pytest.mark.parametrize("axis,start,end", [(0, 2, 2), (0, 3, 2), (1, 0, 5), (2, 0, 1)])
    def test_slice_bounds(self, axis, start, end):
        with pytest.raises(OutOfRange):
            Tensor.range(0, 12).reshape((3, 4)).slice(axis, start, end)

    def test_row_and_col(self):
        matrix = Tensor.from_matrix([[1, 2, 3], [4, 5, 6]])
        assert matrix.row(1) == Tensor.from_vector([4, 5, 6])
        assert matrix.col(2) == Tensor.from_vector([3, 6])

    def test_row_requires_matrix(self):
        with pytest.raises(InvalidArgument):
            Tensor((2, 2, 2)).row(0)


class TestArithmetic:
    def setup_method(self):
        self.a = Tensor.from_matrix([[1, 2], [3, 4]])
        self.b = Tensor.from_matrix([[5, 6], [7, 8]])

    def test_elementwise_operators(self):
        assert (self.a + self.b).tolist() == [6, 8, 10, 12]
        assert (self.b - self.a).tolist() == [4, 4, 4, 4]
        assert (self.a * self.b).tolist() == [5, 12, 21, 32]
        assert (self.b / self.a).allclose(Tensor.from_matrix([[5, 3], [7 / 3, 2]]))

    def test_shape_mismatch_without_broadcasting(self):
        with pytest.raises(ShapeMismatch, match="Shape mismatch for addition"):
            self.a + Tensor.ones((2,))
        with pytest.raises(ShapeMismatch):
            self.a * Tensor.ones((1, 2))

    def test_empty_and_scalar_do_not_combine(self):
        with pytest.raises(ShapeMismatch):
            Tensor() + Tensor.scalar(1.0)

    def test_scalar_operands(self):
        assert (self.a + 1).tolist() == [2, 3, 4, 5]
        assert (self.a * 2).tolist() == [2, 4, 6, 8]
        assert (10 - self.a).tolist() == [9, 8, 7, 6]
        assert (12 / self.a).tolist() == [12, 6, 4, 3]
        assert (2 * self.a) == (self.a * 2)

    def test_in_place_operators(self):
        tensor = self.a.copy()
        tensor += self.b
        tensor -= 1
        assert tensor.tolist() == [5, 7, 9, 11]
        assert self.a.tolist() == [1, 2, 3, 4]

    def test_negation(self):
        assert (-self.a).tolist() == [-1, -2, -3, -4]

    def test_unsupported_operand(self):
        with pytest.raises(TypeError):
            self.a + "x"

    def test_apply_with_python_callable(self):
        assert self.a.apply(lambda x: x * x + 1).tolist() == [2, 5, 10, 17]

    def test_math_functions(self):
        vector = Tensor.from_vector([1.0, 4.0, 9.0])
        assert vector.sqrt().tolist() == [1.0, 2.0, 3.0]
        assert vector.pow(2).tolist() == [1.0, 16.0, 81.0]
        assert (vector ** 2) == vector.pow(2)
        assert Tensor.from_vector([-1.5]).abs().tolist() == [1.5]
        assert Tensor.scalar(0.0).exp().at() == 1.0
        assert Tensor.scalar(1.0).log().at() == 0.0
        assert Tensor.scalar(0.0).sin().at() == 0.0
        assert Tensor.scalar(0.0).cos().at() == 1.0

    def test_invalid_math_produces_nan_silently(self):
        result = Tensor.from_vector([-1.0]).sqrt()
        assert math.isnan(result[0])
        assert math.isinf((Tensor.ones((1,)) / Tensor.zeros((1,)))[0])


class TestReductions:
    def setup_method(self):
        self.matrix = Tensor.from_matrix([[1, 2, 3], [4, 5, 6]])

    def test_global_reductions(self):
        assert self.matrix.sum() == 21.0
        assert self.matrix.mean() == 3.5
        assert self.matrix.min() == 1.0
        assert self.matrix.max() == 6.0
        assert self.matrix.prod() == 720.0

    def test_axis_sum(self):
        assert self.matrix.sum(0) == Tensor.from_vector([5, 7, 9])
        assert self.matrix.sum(1) == Tensor.from_vector([6, 15])

    def test_axis_mean_min_max(self):
        assert self.matrix.mean(0) == Tensor.from_vector([2.5, 3.5, 4.5])
        assert self.matrix.min(1) == Tensor.from_vector([1, 4])
        assert self.matrix.max(0) == Tensor.from_vector([4, 5, 6])

    def test_reducing_vector_gives_single_element_vector(self):
        vector = Tensor.from_vector([1, 2, 3])
        for reduced in (vector.sum(0), vector.mean(0), vector.min(0), vector.max(0)):
            assert reduced.rank == 1
            assert reduced.shape == (1,)
        assert vector.sum(0).tolist() == [6.0]
        assert vector.mean(0).tolist() == [2.0]

    def test_axis_out_of_range(self):
        with pytest.raises(OutOfRange):
            self.matrix.sum(2)
        with pytest.raises(OutOfRange):
            self.matrix.mean(5)

    def test_rank_three_axis_reduction(self):
        tensor = Tensor.range(0, 24).reshape((2, 3, 4))
        reduced = tensor.sum(1)
        assert reduced.shape == (2, 4)
        assert reduced.at(1, 3) == 15.0 + 19.0 + 23.0

    def test_empty_tensor_reductions(self):
        empty = Tensor()
        assert empty.sum() == 0.0
        assert math.isnan(empty.mean())
        with pytest.raises(InvalidArgument):
            empty.min()


class TestMatrixOperations:
    def test_matmul(self):
        a = Tensor.from_matrix([[1, 2, 3], [4, 5, 6]])
        b = Tensor.from_matrix([[7, 8], [9, 10], [11, 12]])
        product = a.matmul(b)
        assert product.shape == (2, 2)
        assert product == Tensor.from_matrix([[58, 64], [139, 154]])
        assert (a @ b) == product

    def test_identity_is_neutral(self):
        matrix = Tensor.random((3, 4), seed=11)
        assert Tensor.identity(3).matmul(matrix).allclose(matrix)

    def test_matmul_inner_dimension_mismatch(self):
        with pytest.raises(InvalidArgument, match="Incompatible shapes"):
            Tensor((2, 3)).matmul(Tensor((2, 3)))

    def test_matmul_requires_matrices(self):
        with pytest.raises(InvalidArgument, match="requires 2D"):
            Tensor((3,)).matmul(Tensor((3, 1)))

    def test_dot(self):
        result = Tensor.from_vector([1, 2, 3]).dot(Tensor.from_vector([4, 5, 6]))
        assert result.rank == 0
        assert result.size == 1
        assert result.at() == 32.0

    def test_dot_errors(self):
        with pytest.raises(InvalidArgument, match="same length"):
            Tensor((2,)).dot(Tensor((3,)))
        with pytest.raises(InvalidArgument):
            Tensor((2, 2)).dot(Tensor((2,)))

    def test_norm_and_normalize(self):
        vector = Tensor.from_vector([3, 4])
        assert vector.norm() == 5.0
        assert vector.normalize().norm() == pytest.approx(1.0, rel=1e-6)
        assert Tensor.random((4, 4), 0.1, 1.0, seed=5).normalize().norm() == pytest.approx(1.0, rel=1e-5)

    def test_normalize_zero_tensor(self):
        zeros = Tensor.zeros((3,))
        assert zeros.normalize() == zeros


class TestComparison:
    def test_equality_requires_shape(self):
        assert Tensor.ones((4,)) != Tensor.ones((2, 2))

    def test_tensors_are_unhashable(self):
        with pytest.raises(TypeError):
            hash(Tensor.ones((1,)))

    def test_allclose(self):
        a = Tensor.from_vector([1.0, 2.0])
        assert a.allclose(Tensor.from_vector([1.0, 2.0 + 1e-6]))
        assert not a.allclose(Tensor.from_vector([1.0, 2.1]))
        assert not a.allclose(Tensor.from_matrix([[1.0, 2.0]]))
        assert a.allclose(Tensor.from_vector([1.0, 2.05]), atol=0.1)


class TestStringViews:
    def test_empty(self):
        assert str(Tensor()) == "Tensor([])"

    def test_scalar(self):
        assert str(Tensor.scalar(1.5)) == "Tensor(1.500000)"

    def test_vector(self):
        assert str(Tensor.from_vector([1, 2])) == "[1.0000, 2.0000]"

    def test_matrix(self):
        text = Tensor.from_matrix([[1, 2], [3, 4]]).to_string()
        assert text == "[[1.0000, 2.0000],\n [3.0000, 4.0000]]"

    def test_higher_rank_is_summarised(self):
        assert str(Tensor((2, 2, 2))) == "Tensor(shape=(2, 2, 2), data=[...])"

    def test_shape_string_and_repr(self):
        tensor = Tensor((2, 3))
        assert tensor.shape_string() == "(2, 3)"
        assert repr(tensor) == "Tensor(shape=(2, 3), size=6)"

    def test_detailed_string(self):
        text = Tensor.from_vector([1, 3]).detailed_string()
        assert "shape: (2)" in text
        assert "rank: 1" in text
        assert "size: 2 elements" in text
        assert "mean: 2" in text
        assert "min" not in Tensor().detailed_string()


class TestVisualizationSupport:
    def test_normalized_data(self):
        assert Tensor.from_vector([2, 4, 6]).normalized_data() == [0.0, 0.5, 1.0]

    def test_normalized_constant_tensor(self):
        assert Tensor.fill((3,), 7.0).normalized_data() == [0.0, 0.0, 0.0]
        assert Tensor().normalized_data() == []

    def test_3d_positions(self):
        positions = Tensor((2, 2)).get_3d_positions(spacing=2.0)
        assert positions == [
            Point3D(0.0, 0.0, 0.0),
            Point3D(0.0, 2.0, 0.0),
            Point3D(2.0, 0.0, 0.0),
            Point3D(2.0, 2.0, 0.0),
        ]

    def test_3d_positions_use_first_three_axes(self):
        positions = Tensor((1, 1, 2, 2)).get_3d_positions()
        assert positions[3] == Point3D(0.0, 0.0, 1.0)


if __name__ == "__main__":
    pytest.main([__file__])
